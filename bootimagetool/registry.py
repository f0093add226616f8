from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class CommandSpec:
    func: Callable[..., Any]
    title: str
    require_device: bool = True
    default_kwargs: Dict[str, Any] = field(default_factory=dict)
    result_handler: Optional[Callable[[Any], None]] = None


class CommandRegistry:
    def __init__(self):
        self._commands: Dict[str, CommandSpec] = {}

    def register(
        self,
        name: str,
        title: str,
        require_device: bool = True,
        result_handler: Optional[Callable[[Any], None]] = None,
        **default_kwargs,
    ):
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._commands[name] = CommandSpec(
                func=func,
                title=title,
                require_device=require_device,
                default_kwargs=default_kwargs,
                result_handler=result_handler,
            )
            return func

        return decorator

    def add(
        self,
        name: str,
        func: Callable[..., Any],
        title: str,
        require_device: bool = True,
        result_handler: Optional[Callable[[Any], None]] = None,
        **default_kwargs: Any,
    ):
        self.register(
            name,
            title,
            require_device=require_device,
            result_handler=result_handler,
            **default_kwargs,
        )(func)

    def get(self, name: str) -> Optional[CommandSpec]:
        return self._commands.get(name)

