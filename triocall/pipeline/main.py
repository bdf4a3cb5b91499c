"""Main entry point for the trio analysis pipeline.

Runs the six steps of the analysis in strict order:

  1. reference preparation (sequential, idempotent)
  2. per-sample alignment (parallel across the trio)
  3. per-sample gVCF generation (parallel across the trio)
  4. joint genotyping and filtering (sequential)
  5. inheritance classification (two parallel candidate sets)
  6. cleanup of transient intermediates

Each step only starts when the previous one finished for every sample.
"""
import os

from triocall import log, utils
from triocall.bam import ref
from triocall.distributed import multi, resources
from triocall.distributed.transaction import DEFAULT_TMP, get_base_tmpdir
from triocall.log import logger
from triocall.ngsalign import bwa
from triocall.pipeline import config_utils, run_info, stage
from triocall.pipeline.exceptions import (MissingInputError, ParallelStageError,
                                          StageExecutionError)
from triocall.variation import gatk, gatkjoint, inheritance, vfilter

NUM_STEPS = 6

def _step(num, descr):
    logger.info("=== STEP %s/%s: %s ===" % (num, NUM_STEPS, descr))

def run_main(config):
    """Run the full trio analysis from a loaded configuration.

    Returns a dictionary of final output files keyed by inheritance pattern.
    """
    config = config_utils.validate(config_utils.merge_defaults(config))
    config = run_info.setup_directories(config)
    handler = log.setup_local_logging(config)
    try:
        return _run_trio(config)
    finally:
        handler.pop_application()
        handler.close()

def _run_trio(config):
    trio = run_info.organize_samples(config)
    logger.info("Trio: child %s, father %s, mother %s" % tuple(trio.names))
    run_info.check_inputs(config, trio)
    plan = resources.plan(config, len(trio))
    logger.info("Using %s cores: %s per sample" % (plan["cores"], plan["cores_per_job"]))

    _step(1, "Reference preparation")
    stage.run_all(ref.prep_stages(config))

    _step(2, "Alignment")
    multi.run_parallel(stage.run, [bwa.align_stage(x, config, plan["cores_per_job"]) for x in trio],
                       name="alignment")

    _step(3, "gVCF generation")
    multi.run_parallel(stage.run, [gatk.gvcf_stage(x, config, plan["cores_per_job"]) for x in trio],
                       name="gVCF generation")

    _step(4, "Joint genotyping and filtering")
    joint_file = stage.run_all(gatkjoint.joint_stages(trio, config))[-1]
    filtered_file = stage.run(vfilter.filter_stage(config, joint_file))

    _step(5, "Inheritance analysis")
    cstages = inheritance.candidate_stages(trio, config, filtered_file)
    candidates = multi.run_parallel(stage.run, cstages, num_jobs=len(cstages),
                                    name="inheritance analysis")
    out = dict(zip(inheritance.PATTERNS.keys(), candidates))

    _step(6, "Cleanup")
    cleanup(config)
    logger.info("=== Pipeline Complete ===")
    for pattern, fname in out.items():
        logger.info("%s candidates: %s" % (pattern, fname))
    return out

def cleanup(config):
    """Remove transient workspaces once final outputs exist.
    """
    if config.get("keep_intermediates"):
        logger.info("Keeping intermediate files in %s" % config["work_dir"])
        return
    utils.remove_safe(gatkjoint.genomicsdb_dir(config))
    tmp_base = get_base_tmpdir(config, os.getcwd())
    if os.path.basename(tmp_base) == DEFAULT_TMP and os.path.isdir(tmp_base) and not os.listdir(tmp_base):
        utils.remove_safe(tmp_base)

def failure_summary(e):
    """Describe which stage and samples a fatal error came from.
    """
    if isinstance(e, ParallelStageError):
        return "Stage '%s' failed for samples: %s" % (e.stage, ", ".join(str(x) for x in e.samples))
    elif isinstance(e, MissingInputError):
        return "Stage '%s' is missing input %s" % (e.stage, e.path)
    elif isinstance(e, StageExecutionError):
        if e.sample:
            return "Stage '%s' failed for sample: %s" % (e.stage, e.sample)
        return "Stage '%s' failed" % e.stage
    return "Pipeline failed: %s" % e
