"""Errors raised while running the trio pipeline.

Everything deriving from TrioPipelineError halts a run, with the exception of
MalformedRecordError which is caught during classification and only skips the
offending variant record.
"""


class TrioPipelineError(Exception):
    pass


class ConfigurationError(TrioPipelineError):
    pass


class MissingInputError(TrioPipelineError):
    """A required input artifact is absent when a stage starts.
    """
    def __init__(self, path, stage=None):
        self.path = path
        self.stage = stage
        msg = "Missing required input file: %s" % path
        if stage:
            msg = "%s: %s" % (stage, msg)
        super(MissingInputError, self).__init__(msg)


class StageExecutionError(TrioPipelineError):
    """An external tool or stage action failed.
    """
    def __init__(self, msg, stage=None, sample=None):
        self.stage = stage
        self.sample = sample
        super(StageExecutionError, self).__init__(msg)


class MissingArtifactError(StageExecutionError):
    """A stage finished without producing its declared output.
    """
    def __init__(self, path, stage=None, sample=None):
        self.path = path
        super(MissingArtifactError, self).__init__(
            "Did not find non-empty output file %s" % path, stage, sample)


class ParallelStageError(StageExecutionError):
    """One or more tasks of a fan-out stage failed.

    `failures` holds (item label, exception) pairs in submission order and
    `cause` is the first of them.
    """
    def __init__(self, stage, failures):
        self.failures = failures
        self.cause = failures[0][1] if failures else None
        labels = ", ".join(str(label) for label, _ in failures)
        msg = "%s failed for %s of its tasks: %s" % (stage, len(failures), labels)
        if self.cause is not None:
            msg += "\nFirst error: %s" % self.cause
        super(ParallelStageError, self).__init__(msg, stage)

    @property
    def samples(self):
        return [label for label, _ in self.failures]


class MalformedRecordError(TrioPipelineError):
    pass
