from __future__ import annotations


class MemeError(Exception):
    """Base class for load, lookup and export failures."""


class ConfigError(MemeError):
    pass


class AssetNotFound(MemeError):
    def __init__(self, template: str, detail: str | None = None) -> None:
        self.template = template
        message = f"cannot read image.png or animated.gif for template {template}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TemplateNotFound(MemeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"can't find template {name}")


class UnsupportedOperation(MemeError):
    pass
