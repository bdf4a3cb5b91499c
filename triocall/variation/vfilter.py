"""Cutoff-based hard filtering of the joint trio calls.
"""
import os

from triocall.distributed.transaction import file_transaction
from triocall.pipeline import config_utils
from triocall.pipeline.stage import Stage
from triocall.provenance import do

def filtered_file(config):
    return os.path.join(config["work_dir"], "trio_filtered.vcf.gz")

def get_expression(config):
    """bcftools include expression keeping calls with enough quality and depth.
    """
    min_qual = config_utils.get_algorithm("min_qual", config, 10)
    min_depth = config_utils.get_algorithm("min_depth", config, 10)
    return "QUAL>={0} && INFO/DP>={1}".format(min_qual, min_depth)

def cutoff_w_expression(vcf_file, config, out_file=None):
    """Keep records passing quality and depth cutoffs, restricted to target regions.
    """
    out_file = out_file or filtered_file(config)
    bcftools = config_utils.get_program("bcftools", config)
    expression = get_expression(config)
    targets = config["targets"]
    timeout = config_utils.get_algorithm("timeout", config)
    with file_transaction(config, out_file) as tx_out_file:
        cmd = ("{bcftools} filter -i '{expression}' -O u {vcf_file} | "
               "{bcftools} view -T {targets} -O z -o {tx_out_file} -")
        do.run(cmd.format(**locals()), "Cutoff-based filtering with %s" % expression,
               checks=[do.file_nonempty(tx_out_file)], timeout=timeout)
        do.run("{bcftools} index -t {tx_out_file}".format(**locals()), "Index filtered calls",
               timeout=timeout)
    return out_file

def filter_stage(config, vcf_file):
    out_file = filtered_file(config)
    return Stage("variant filtering", out_file, lambda: cutoff_w_expression(vcf_file, config, out_file),
                 requires=[config["targets"]], upstream=[vcf_file])
