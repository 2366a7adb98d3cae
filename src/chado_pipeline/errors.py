"""Exception hierarchy shared by the build, export and query layers."""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for every error raised by chado_pipeline."""

    message_template: str = "Pipeline error"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.details = details
        if message:
            self.message = message
        else:
            try:
                self.message = self.message_template.format(**details)
            except KeyError:
                self.message = self.message_template
        super().__init__(self.message)


class ConfigError(PipelineError):
    """A mandatory configuration entry is missing or invalid."""

    message_template = "Configuration error"


class BuildError(PipelineError):
    """Raw input is structurally inconsistent; the whole build is aborted."""

    message_template = "Build failed"


class ExportError(PipelineError):
    """Writing a required artifact failed; the export is unusable."""

    message_template = "Failed to write {artifact}: {reason}"


class QueryError(PipelineError):
    """A query tree is malformed."""

    message_template = "illegal query"


class InputError(PipelineError):
    """A secondary input file is malformed."""

    message_template = "Malformed input {path}: {reason}"
