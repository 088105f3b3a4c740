"""
Registry pattern utility.

``new_registry`` returns a dict and a decorator that fills it. The remapping
engine uses it to look up vertical anchor handlers by
:py:class:`~psd_remapper.constants.Anchor`::

    ANCHORS, register = new_registry(attribute='anchor')

    @register(Anchor.TOP)
    def anchor_top(target_rect, scaled_height):
        return target_rect.y

    ANCHORS[Anchor.TOP](rect, 10.0)
"""

from typing import Any, Callable, Tuple, TypeVar, Union

T = TypeVar("T")


def new_registry(attribute: Union[str, None] = None) -> Tuple[dict, Callable]:
    """
    Returns an empty dict and a @register decorator.

    :param attribute: Optional attribute name under which the key is stored
        on each registered object.
    :return: Tuple of (registry_dict, register_decorator)
    """
    registry: dict = {}

    def register(key: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            registry[key] = func
            if attribute:
                setattr(func, attribute, key)
            return func

        return decorator

    return registry, register
