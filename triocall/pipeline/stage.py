"""Run units of pipeline work only when their output is not already present.

A Stage names the artifact it produces. When that artifact is complete the
stage is skipped, which makes re-running a partially failed pipeline cheap:
only the unfinished stages do any work. Actions write through
file_transaction so an artifact only appears once it is fully written.
"""
from triocall import utils
from triocall.distributed import transaction
from triocall.log import stage_status
from triocall.pipeline.exceptions import (MissingArtifactError, MissingInputError,
                                          StageExecutionError, TrioPipelineError)


class Stage(object):
    """A named unit of work producing `out_file` from its `requires` inputs.

    `action` is called with no arguments and writes `out_file`. `requires`
    lists user supplied inputs while `upstream` lists outputs of earlier
    stages, whose absence means an earlier stage broke its contract. Directory
    outputs supply `is_complete`, a function of the output path, since a
    non-empty check is not meaningful for them.
    """
    def __init__(self, name, out_file, action, requires=None, is_complete=None, sample=None,
                 upstream=None):
        self.name = name
        self.out_file = out_file
        self.action = action
        self.requires = list(requires or [])
        self.is_complete = is_complete or utils.file_exists
        self.sample = sample
        self.upstream = list(upstream or [])

    def done(self):
        return bool(self.is_complete(self.out_file)) and not transaction.is_incomplete(self.out_file)

    def __repr__(self):
        return "Stage(%s%s)" % (self.name, " : %s" % self.sample if self.sample else "")


def run(stage):
    """Run a stage if its output is missing, returning the output file.
    """
    if stage.done():
        stage_status(stage.name, "skip", stage.sample, "output exists: %s" % stage.out_file)
        return stage.out_file
    for fname in stage.requires:
        if not utils.file_exists(fname):
            stage_status(stage.name, "fail", stage.sample, "missing input %s" % fname)
            raise MissingInputError(fname, stage.name)
    for fname in stage.upstream:
        if not utils.file_exists(fname):
            stage_status(stage.name, "fail", stage.sample, "missing upstream output %s" % fname)
            raise MissingArtifactError(fname, stage.name, stage.sample)
    stage_status(stage.name, "start", stage.sample)
    try:
        stage.action()
        if not stage.done():
            raise MissingArtifactError(stage.out_file, stage.name, stage.sample)
    except TrioPipelineError as e:
        if isinstance(e, StageExecutionError):
            e.stage = stage.name
            e.sample = e.sample or stage.sample
        stage_status(stage.name, "fail", stage.sample, str(e).split("\n")[0])
        raise
    except (OSError, ValueError) as e:
        stage_status(stage.name, "fail", stage.sample, str(e))
        raise StageExecutionError(str(e), stage.name, stage.sample) from e
    stage_status(stage.name, "complete", stage.sample)
    return stage.out_file


def run_all(stages):
    """Run stages in sequence, stopping at the first failure.
    """
    return [run(x) for x in stages]
