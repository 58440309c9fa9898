"""Preset function compilation and invocation.

A preset's logic is stored as text so it can live in YAML files or a
database next to its parameter schema. The text is Python source for
exactly one function, either

    def preset(input_data, props):
        ...

(or `async def`), or a single lambda expression. It takes at most two
positional parameters: the resolved input data and the props mapping
(config, style, clip, baseData, fetcher).

Compilation is a function factory: the source is executed in a brand
new globals namespace that holds nothing but the builtins, so the
compiled function cannot see this module or its caller. The source is
trusted; this is isolation of scope, not a security sandbox.

Preset functions may return either {output, options} or a bare partial
composition. Both shapes are normalized to {output, options}; a falsy
result means "no contribution" and normalizes to None.
"""

import ast
import builtins
import inspect
import textwrap

_LAMBDA_NAME = "_preset_lambda"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class PresetCompileError(ValueError):
    """Preset function source could not be turned into a callable."""


class PresetExecutionError(RuntimeError):
    """A preset function raised, or returned something unusable."""


# ── Compilation ───────────────────────────────────────────────────


def _function_module(source: str) -> tuple[ast.Module, str]:
    """Parse source and return a module defining exactly one function, plus its name."""
    try:
        module = ast.parse(source, filename="<preset>", mode="exec")
    except SyntaxError as exc:
        raise PresetCompileError(f"Preset function has a syntax error: {exc}") from exc

    if len(module.body) != 1:
        raise PresetCompileError(
            f"Preset source must define exactly one function, got {len(module.body)} statements"
        )

    stmt = module.body[0]
    if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return module, stmt.name

    if isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Lambda):
        # Bind the lambda to a name so it can be fetched after exec.
        module.body = [
            ast.Assign(
                targets=[ast.Name(id=_LAMBDA_NAME, ctx=ast.Store())],
                value=stmt.value,
                lineno=stmt.lineno,
            )
        ]
        ast.fix_missing_locations(module)
        return module, _LAMBDA_NAME

    raise PresetCompileError(
        "Preset source must be a single 'def', 'async def' or lambda expression"
    )


def _check_arity(fn) -> None:
    params = inspect.signature(fn).parameters.values()
    required = [p for p in params if p.default is inspect.Parameter.empty]
    positional = [p for p in required if p.kind in _POSITIONAL]
    keyword_only = [p for p in required if p.kind == inspect.Parameter.KEYWORD_ONLY]
    if len(positional) > 2 or keyword_only:
        raise PresetCompileError(
            "Preset function may require at most two positional parameters "
            "(input_data, props)"
        )


def compile_preset_function(source: str):
    """Compile preset source text into a fresh top-level callable.

    Raises:
        PresetCompileError: Empty source, syntax error, not exactly one
            function, or more than two required parameters.
    """
    if not isinstance(source, str) or not source.strip():
        raise PresetCompileError("Preset function source is empty")

    module, name = _function_module(textwrap.dedent(source).strip())
    namespace = {"__builtins__": builtins, "__name__": "preset"}
    try:
        exec(compile(module, "<preset>", "exec"), namespace)
    except Exception as exc:
        raise PresetCompileError(f"Preset function failed to load: {exc}") from exc

    fn = namespace[name]
    _check_arity(fn)
    return fn


# ── Invocation ────────────────────────────────────────────────────


def _call(fn, input_data, props):
    """Call fn with as many of (input_data, props) as it accepts."""
    params = inspect.signature(fn).parameters.values()
    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        count = 2
    else:
        count = min(2, sum(1 for p in params if p.kind in _POSITIONAL))
    return fn(*(input_data, props)[:count])


def normalize_preset_output(result) -> dict | None:
    """Bring either return shape to {output, options}.

    Returns None for falsy results (including a wrapped result whose
    output is empty).

    Raises:
        PresetExecutionError: The result is not a mapping.
    """
    if not result:
        return None
    if not isinstance(result, dict):
        raise PresetExecutionError(
            f"Preset function must return a mapping, got {type(result).__name__}"
        )
    if "output" in result:
        if not result["output"]:
            return None
        return {"output": result["output"], "options": result.get("options") or {}}
    return {"output": result, "options": {}}


async def run_preset(preset_function, input_data, props: dict) -> dict | None:
    """Run a preset function and normalize what it returns.

    Args:
        preset_function: Source text or an already compiled callable.
        input_data: Resolved input parameters.
        props: Context handed to the preset (config, style, clip,
            baseData, fetcher).

    Returns:
        {output, options} or None when the preset contributes nothing.

    Raises:
        PresetCompileError: Source did not compile.
        PresetExecutionError: The preset raised or returned a non-mapping.
    """
    if isinstance(preset_function, str):
        fn = compile_preset_function(preset_function)
    else:
        fn = preset_function

    try:
        result = _call(fn, input_data, props)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise PresetExecutionError(
            f"Preset function raised {type(exc).__name__}: {exc}"
        ) from exc
    return normalize_preset_output(result)
