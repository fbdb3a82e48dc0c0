"""Error taxonomy for the rendering pipeline."""


class ParallelbrotError(Exception):
    """Base class for all renderer errors."""


class ConfigurationError(ParallelbrotError, ValueError):
    """Invalid run configuration, detected before the pipeline starts."""


class ResourceCreationError(ParallelbrotError, OSError):
    """The output file could not be created.

    The image has already been computed when this is raised; the run ends
    without an output artifact.
    """


class InternalProtocolViolation(ParallelbrotError, RuntimeError):
    """A pipeline invariant was broken.

    This is a programming defect (e.g. a pixel written twice, more pixels than
    the image holds, a worker slot released twice) and is never recovered from.
    """


class RenderCancelled(ParallelbrotError):
    """The run was stopped before every pixel was rendered."""
