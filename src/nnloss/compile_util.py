from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import torch.compiler

F = TypeVar("F", bound=Callable[..., Any])


def skip_if_compiling(func: F) -> F:
    """
    Decorator for shape and value checks that must not run inside a
    torch.compile trace. While compiling the wrapped call is a no-op.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if torch.compiler.is_compiling():
            return None
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
