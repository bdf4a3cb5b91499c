#!/usr/bin/env python
"""Run the trio germline analysis pipeline: alignment, joint calling and inheritance classification.

The optional <config file> is a YAML file describing the run:

  reference: Common/universe.fasta
  targets: Common/targetsPad100.bed
  samples: [child, father, mother]
  input_dir: in
  work_dir: out
  resources:
    cores: {max: 10}
    gatk: {docker: broadinstitute/gatk}

Command line options override values from the file. Samples are always given
in child, father, mother order.

Usage:
  triocall_nextgen.py [<config_file>] [--reference REF] [--targets BED]
                      [--samples CHILD FATHER MOTHER] [-n WORKER_CEILING]
"""
import argparse
import os
import sys

from triocall.log import logger
from triocall.pipeline import config_utils, version
from triocall.pipeline.exceptions import TrioPipelineError
from triocall.pipeline.main import failure_summary, run_main

def parse_cl_args(in_args):
    """Parse input commandline arguments, returning the run configuration.
    """
    description = "Trio alignment, joint genotyping and inheritance classification."
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("config_file", nargs="?",
                        help="YAML configuration file describing the run (optional)")
    parser.add_argument("--reference", help="Reference genome FASTA file")
    parser.add_argument("--targets", help="BED file of target regions, restricts variant output")
    parser.add_argument("--samples", nargs=3, metavar=("CHILD", "FATHER", "MOTHER"),
                        help="Sample identifiers, in child, father, mother order")
    parser.add_argument("-n", "--worker-ceiling", type=int,
                        help="Maximum number of cores to use regardless of host capacity")
    parser.add_argument("--input-dir", help="Directory containing <sample>.fq.gz read files")
    parser.add_argument("--workdir", help="Directory to write outputs to")
    parser.add_argument("--timeout", type=int,
                        help="Seconds before an external tool is stopped and the run fails")
    parser.add_argument("--keep-intermediates", action="store_true", default=False,
                        help="Keep the GenomicsDB workspace after the run")
    parser.add_argument("-v", "--version", help="Print current version",
                        action="store_true")
    args = parser.parse_args(in_args)
    if args.version:
        print(version.__version__)
        sys.exit(0)
    config = config_utils.load_config(args.config_file) if args.config_file else {}
    return config_utils.update_w_args(config, args)

def main(in_args):
    config = parse_cl_args(in_args)
    try:
        run_main(config)
    except TrioPipelineError as e:
        logger.error(failure_summary(e))
        logger.error(str(e))
        sys.exit(1)

if __name__ == "__main__":
    main(sys.argv[1:])
