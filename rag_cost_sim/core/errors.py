"""
Error types raised by the cost and pipeline modules.
"""


class UnknownModel(ValueError):
    """Raised when a model identifier is not registered in the pricing catalog."""
    def __init__(self, model: str):
        super().__init__(f"Unsupported model: {model}")
        self.model = model


class InvalidArgument(ValueError):
    """Raised for negative or non-finite token and record counts."""


class InvalidStageTransition(RuntimeError):
    """Raised when a stage status would regress or skip a step."""


class PipelineBusy(RuntimeError):
    """Raised when a turn is submitted while another run is in flight."""


class StageFailed(RuntimeError):
    """Raised when a pipeline stage ends in the error state."""
    def __init__(self, message: str, stage_id: str):
        super().__init__(message)
        self.stage_id = stage_id
