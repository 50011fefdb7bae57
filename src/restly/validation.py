"""Handler signature validation for strict mode."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, get_type_hints

from restly.resource import is_model

if TYPE_CHECKING:
    from restly.parser import Parser
    from restly.routing import RouteRule


def validate_handler_signature(func: Any, rule: RouteRule, method: str, parser: Parser | None = None) -> None:
    """Validate a verb handler's type annotations at registration time.

    Raises :class:`TypeError` with an actionable message when the handler
    violates strict-mode typing rules.
    """
    name = getattr(func, "__qualname__", repr(func))
    where = f"[{method} {rule.rule}]"
    hints = get_type_hints(func)
    sig = inspect.signature(func)
    known = set(rule.variables)
    if parser is not None:
        known.update(opts.dest or key for key, opts in parser.params.items())

    # --- Rule 1: Return type annotation must exist ---
    if "return" not in hints:
        raise TypeError(
            f"\n\nStrict-mode violation in handler '{name}' {where}\n"
            f"  Problem: Missing return type annotation.\n"
            f"  Fix:     Add a return type, e.g. -> dict or -> YourModel.\n"
        )

    for param_name, param in sig.parameters.items():
        if param_name == "request" or param.kind in (param.VAR_KEYWORD, param.VAR_POSITIONAL):
            continue

        hint = hints.get(param_name)

        # --- Rule 2: All params must be typed ---
        if hint is None:
            raise TypeError(
                f"\n\nStrict-mode violation in handler '{name}' {where}\n"
                f"  Problem: Parameter '{param_name}' has no type annotation.\n"
                f"  Fix:     Add a type annotation, e.g. {param_name}: str "
                f"or {param_name}: YourModel.\n"
            )

        # Path variables and parser params arrive as plain values
        if param_name in known:
            continue

        # --- Rule 3: Anything else must be a model built from the request ---
        if not is_model(hint):
            type_label = hint.__name__ if isinstance(hint, type) else repr(hint)
            raise TypeError(
                f"\n\nStrict-mode violation in handler '{name}' {where}\n"
                f"  Current: {param_name}: {type_label}\n"
                f"  Problem: Parameter '{param_name}' is neither a url variable, "
                f"a parser parameter nor a BaseModel subclass.\n"
                f"  Fix:     Declare it with a Parser, or wrap it in a Pydantic model, "
                f"e.g. {param_name}: {param_name.title()}Model.\n"
            )
