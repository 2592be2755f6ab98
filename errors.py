"""Exceptions raised by the label designer."""

from __future__ import annotations


class LabelDesignerError(Exception):
    """Base class for user-facing label designer errors."""


class EmptyLayoutError(LabelDesignerError):
    def __init__(self) -> None:
        super().__init__(
            "The label layout has no visible elements. "
            "Edit the layout before generating labels."
        )


class EmptySelectionError(LabelDesignerError):
    def __init__(self) -> None:
        super().__init__("Select at least one record before generating labels.")


class NotReadyError(LabelDesignerError):
    """QR images for the selection are still being generated."""

    def __init__(self, pending: list[str]) -> None:
        self.pending = list(pending)
        super().__init__(
            f"QR codes are still being generated for {len(self.pending)} "
            "record(s). Try again in a moment."
        )


class GenerationInProgressError(LabelDesignerError):
    def __init__(self) -> None:
        super().__init__("A document is already being generated.")


class TemplatePersistenceError(LabelDesignerError):
    pass


class UnknownTemplateError(LabelDesignerError):
    pass


class CatastrophicAssemblyFailure(LabelDesignerError):
    pass
