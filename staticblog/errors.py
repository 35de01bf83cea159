from __future__ import annotations


class BuildError(Exception):
    """Base class for every error that aborts a build."""


class LoadError(BuildError):
    pass


class DuplicateIdentifierError(BuildError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Duplicate content identifier: {identifier}")
        self.identifier = identifier


class RouteParseError(BuildError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"Cannot derive route for {identifier!r}: {reason}")
        self.identifier = identifier


class DuplicateRouteError(BuildError):
    def __init__(self, path: str, first: str, second: str) -> None:
        super().__init__(f"Output path {path} registered by both {first!r} and {second!r}")
        self.path = path


class OrderingError(BuildError):
    pass


class TemplateError(BuildError):
    pass


class PipelineError(BuildError):
    pass
