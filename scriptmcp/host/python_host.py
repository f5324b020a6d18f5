"""
Python script host - runs Python scripts and module functions as commands.

Scripts are ``*.py`` files defining a top-level ``main`` function; every
invocation re-runs the file in a fresh namespace and calls ``main``. Modules
are imported once per session and their exported functions are called
directly, so module globals persist between calls on the same session.
Coroutine functions are run to completion on a private event loop.

Command metadata is read from source with ``ast`` rather than by importing
or evaluating anything: defaults are only taken when they are literal
constants, and annotations are matched by name.
"""

from __future__ import annotations

import ast
import asyncio
import base64
import dataclasses
import importlib
import importlib.util
import inspect
import json
import logging
import runpy
import sys
import textwrap
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from scriptmcp.errors import CommandNotFoundError, ConfigurationError, DocumentationError
from scriptmcp.host.base import (
    CommandInfo,
    CommandKind,
    HelpDocument,
    HostSession,
    ModuleInfo,
    ParameterInfo,
    ValueKind,
)
from scriptmcp.host.docstrings import parse_help
from scriptmcp.host.streams import bind_streams

logger = logging.getLogger(__name__)

# Annotation marker for on/off flags; behaves as bool at runtime.
Switch = bool

SCRIPT_EXTENSION = ".py"
ENTRY_POINT = "main"

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

_KIND_NAMES = {
    "str": ValueKind.STRING,
    "int": ValueKind.INTEGER,
    "float": ValueKind.NUMBER,
    "bool": ValueKind.BOOLEAN,
    "Switch": ValueKind.SWITCH,
    "list": ValueKind.ARRAY,
    "List": ValueKind.ARRAY,
    "tuple": ValueKind.ARRAY,
    "Tuple": ValueKind.ARRAY,
    "set": ValueKind.ARRAY,
    "Set": ValueKind.ARRAY,
    "Sequence": ValueKind.ARRAY,
    "Iterable": ValueKind.ARRAY,
    "dict": ValueKind.OBJECT,
    "Dict": ValueKind.OBJECT,
    "Mapping": ValueKind.OBJECT,
    "MutableMapping": ValueKind.OBJECT,
    "Any": ValueKind.ANY,
}


# ── Source analysis ───────────────────────────────────────────────────────


def _dotted_tail(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def annotation_kind(node: Optional[ast.AST]) -> Tuple[ValueKind, Optional[ValueKind]]:
    """Map an annotation expression to (kind, array item kind)."""
    if node is None:
        return ValueKind.ANY, None

    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            node = ast.parse(node.value, mode="eval").body
        except SyntaxError:
            return ValueKind.ANY, None

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        members = [m for m in (node.left, node.right) if not _is_none(m)]
        if len(members) == 1:
            return annotation_kind(members[0])
        return ValueKind.ANY, None

    if isinstance(node, ast.Subscript):
        base = _dotted_tail(node.value)
        args = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
        if base in ("Optional", "Annotated"):
            return annotation_kind(args[0])
        if base == "Union":
            members = [m for m in args if not _is_none(m)]
            if len(members) == 1:
                return annotation_kind(members[0])
            return ValueKind.ANY, None
        kind = _KIND_NAMES.get(base, ValueKind.ANY)
        if kind is ValueKind.ARRAY and args:
            item_kind, _ = annotation_kind(args[0])
            return kind, None if item_kind is ValueKind.ANY else item_kind
        return kind, None

    return _KIND_NAMES.get(_dotted_tail(node), ValueKind.ANY), None


def literal_default(node: Optional[ast.AST]) -> Any:
    """Return the value of a constant default expression, else None."""
    if isinstance(node, ast.Constant) and node.value is not None and node.value is not Ellipsis:
        return node.value
    if (
        isinstance(node, ast.UnaryOp)
        and isinstance(node.op, (ast.USub, ast.UAdd))
        and isinstance(node.operand, ast.Constant)
        and isinstance(node.operand.value, (int, float))
        and not isinstance(node.operand.value, bool)
    ):
        value = node.operand.value
        return -value if isinstance(node.op, ast.USub) else value
    return None


def describe_parameters(func: FunctionNode) -> List[ParameterInfo]:
    """Describe the keyword-bindable parameters of a function definition."""
    args = func.args
    positional = args.posonlyargs + args.args
    padding: List[Optional[ast.AST]] = [None] * (len(positional) - len(args.defaults))
    # positional-only parameters can't be passed by keyword
    pairs = list(zip(positional, padding + list(args.defaults)))[len(args.posonlyargs):]
    pairs += list(zip(args.kwonlyargs, args.kw_defaults))

    parameters = []
    for arg, default in pairs:
        kind, item_kind = annotation_kind(arg.annotation)
        parameters.append(
            ParameterInfo(
                name=arg.arg,
                kind=kind,
                item_kind=item_kind,
                mandatory=default is None,
                default=literal_default(default),
            )
        )
    return parameters


def _is_overload(func: FunctionNode) -> bool:
    return any(_dotted_tail(d) == "overload" for d in func.decorator_list)


def find_function(tree: ast.Module, name: str) -> Tuple[Optional[FunctionNode], int]:
    """
    Find the implementation of a top-level function.

    Returns the definition and its number of parameter sets, which is the
    count of ``@overload`` variants (at least 1).
    """
    implementation = None
    overloads = 0
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name:
            if _is_overload(node):
                overloads += 1
            else:
                implementation = node
    return implementation, max(overloads, 1)


# ── Session ───────────────────────────────────────────────────────────────


class PythonSession(HostSession):
    """
    An in-process Python interpreter context.

    A session holds at most one imported module. Scripts may be resolved on
    any session; they carry no state between invocations.
    """

    def __init__(self):
        super().__init__()
        self.module: Optional[Any] = None
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._commands: Dict[str, CommandInfo] = {}
        self._help: Dict[str, Optional[HelpDocument]] = {}

    # ── Resolution ────────────────────────────────────────────────────────

    def resolve(self, name: str) -> CommandInfo:
        if name in self._commands:
            return self._commands[name]

        if name.endswith(SCRIPT_EXTENSION) or Path(name).is_file():
            return self._resolve_script(name)

        raise CommandNotFoundError(f"The function '{name}' cannot be found.")

    def _resolve_script(self, name: str) -> CommandInfo:
        path = Path(name).resolve()
        if not path.is_file():
            raise CommandNotFoundError(f"The script '{name}' cannot be found.")

        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except (OSError, SyntaxError) as exc:
            raise CommandNotFoundError(f"The script '{name}' cannot be loaded.") from exc

        func, parameter_sets = find_function(tree, ENTRY_POINT)
        if func is None:
            raise CommandNotFoundError(
                f"The script '{name}' does not define a '{ENTRY_POINT}' function."
            )

        command = CommandInfo(
            kind=CommandKind.SCRIPT,
            name=path.name,
            source=str(path),
            parameters=describe_parameters(func),
            parameter_set_count=parameter_sets,
        )
        self._help[command.source] = parse_help(
            path.name, ast.get_docstring(func) or ast.get_docstring(tree)
        )
        self._commands[name] = command
        return command

    def import_module(self, name: str) -> ModuleInfo:
        module = self._load_module(name)
        try:
            tree = ast.parse(textwrap.dedent(inspect.getsource(module)))
        except (OSError, TypeError, SyntaxError) as exc:
            raise ConfigurationError(f"The source of module '{name}' is not available.") from exc

        exported = getattr(module, "__all__", None)
        if exported is None:
            exported = [
                attr
                for attr, value in vars(module).items()
                if inspect.isfunction(value)
                and value.__module__ == module.__name__
                and not attr.startswith("_")
            ]

        info = ModuleInfo(name=module.__name__)
        for func_name in exported:
            func = getattr(module, func_name, None)
            if not inspect.isfunction(func):
                continue

            definition, parameter_sets = find_function(tree, func_name)
            if definition is None:
                definition, parameter_sets = self._find_foreign_definition(func)
            if definition is None:
                raise DocumentationError(
                    f"The function '{func_name}' has no def statement to describe."
                )

            command = CommandInfo(
                kind=CommandKind.FUNCTION,
                name=func_name,
                source=func_name,
                parameters=describe_parameters(definition),
                parameter_set_count=parameter_sets,
            )
            self._functions[func_name] = func
            self._commands[func_name] = command
            self._help[func_name] = parse_help(func_name, ast.get_docstring(definition))
            info.exported_functions[func_name] = command

        self.module = module
        logger.debug("Imported module %s (%d functions)", info.name, len(info.exported_functions))
        return info

    @staticmethod
    def _find_foreign_definition(func: Callable[..., Any]) -> Tuple[Optional[FunctionNode], int]:
        """Locate a function re-exported from another module; lambdas have none."""
        try:
            tree = ast.parse(textwrap.dedent(inspect.getsource(func)))
        except (OSError, TypeError, SyntaxError):
            return None, 1
        return find_function(tree, func.__name__)

    @staticmethod
    def _load_module(name: str) -> Any:
        path = Path(name)
        try:
            if path.suffix == SCRIPT_EXTENSION and path.is_file():
                spec = importlib.util.spec_from_file_location(path.stem, path)
                module = importlib.util.module_from_spec(spec)
                sys.modules[path.stem] = module
                spec.loader.exec_module(module)
                return module
            return importlib.import_module(name)
        except ImportError as exc:
            raise CommandNotFoundError(f"The module '{name}' cannot be imported.") from exc

    # ── Metadata ──────────────────────────────────────────────────────────

    def get_help(self, command: CommandInfo) -> Optional[HelpDocument]:
        return self._help.get(command.source)

    # ── Execution ─────────────────────────────────────────────────────────

    def execute(self, command: CommandInfo, arguments: Optional[Dict[str, Any]] = None) -> List[Any]:
        try:
            with bind_streams(self.streams):
                if command.kind is CommandKind.SCRIPT:
                    output = self._run_script(command.source, arguments or {})
                else:
                    output = self._functions[command.source](**(arguments or {}))
                if inspect.iscoroutine(output):
                    output = asyncio.run(output)
                return _collect(output)
        finally:
            self.streams.clear()

    @staticmethod
    def _run_script(path: str, arguments: Dict[str, Any]) -> Any:
        namespace = runpy.run_path(path, run_name="__scriptmcp__")
        return namespace[ENTRY_POINT](**arguments)

    # ── JSON conversion ───────────────────────────────────────────────────

    def convert_from_json(self, text: str, depth: int) -> Any:
        value = json.loads(text)
        if _nesting(value) > depth:
            raise ValueError(f"The JSON input exceeds the maximum allowed depth of {depth}.")
        return value

    def convert_to_json(
        self, value: Any, depth: int, enums_as_names: bool = True, compress: bool = True
    ) -> str:
        projected = _project(value, depth, 0, enums_as_names)
        if compress:
            return json.dumps(projected, separators=(",", ":"), ensure_ascii=False)
        return json.dumps(projected, indent=2, ensure_ascii=False)

    def close(self) -> None:
        super().close()
        self._functions.clear()
        self._commands.clear()
        self.module = None


def _collect(output: Any) -> List[Any]:
    if output is None:
        return []
    if isinstance(output, (str, bytes, dict, list, tuple)):
        return [output]
    if inspect.isgenerator(output) or isinstance(output, Iterator):
        return [item for item in output if item is not None]
    return [output]


def _nesting(value: Any) -> int:
    if isinstance(value, dict):
        return 1 + max((_nesting(v) for v in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((_nesting(v) for v in value), default=0)
    return 0


def _project(value: Any, depth: int, level: int, enums_as_names: bool) -> Any:
    """
    Project an object graph onto JSON-compatible values.

    Mappings and objects nest one level each; anything deeper than ``depth``
    is rendered with ``str()``. Sequences do not count as a level.
    """
    if isinstance(value, Enum):
        if enums_as_names:
            return value.name
        return _project(value.value, depth, level, enums_as_names)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_project(item, depth, level, enums_as_names) for item in value]

    if isinstance(value, dict):
        members = value
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        members = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    elif hasattr(value, "__dict__") and not isinstance(value, type):
        members = {k: v for k, v in vars(value).items() if not k.startswith("_")}
    else:
        return str(value)

    if level >= depth:
        return str(value)
    return {str(k): _project(v, depth, level + 1, enums_as_names) for k, v in members.items()}
