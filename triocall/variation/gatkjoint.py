"""Perform joint genotyping of the trio using GATK HaplotypeCaller gVCF inputs.

Merges the three gVCFs into a shared database using GenomicsDBImport and
follows this with joint variant calling using GenotypeGVCFs.
"""
import os

from triocall import broad, utils
from triocall.distributed.transaction import file_transaction
from triocall.pipeline.stage import Stage
from triocall.provenance import do

GENOMICSDB_FILES = ["callset.json", "vidmap.json", "genomicsdb_array/genomicsdb_meta.json"]

def genomicsdb_dir(config):
    return os.path.join(config["work_dir"], "trio_db")

def joint_file(config):
    return os.path.join(config["work_dir"], "trio_joint.vcf.gz")

def incomplete_genomicsdb(dbdir):
    """Check if a GenomicsDB output is incomplete and we should regenerate.

    GenomicsDB workspaces cannot be moved after creation, so they are written
    in place and completion is judged from the metadata files GATK writes last.
    """
    for test_file in GENOMICSDB_FILES:
        if not os.path.exists(os.path.join(dbdir, test_file)):
            return True
    return False

def run_genomicsdb_import(trio, config):
    """Create a GenomicsDB workspace for the trio gVCFs, keyed by sample name.
    """
    out_dir = genomicsdb_dir(config)
    if os.path.exists(out_dir):
        utils.remove_safe(out_dir)
    broad_runner = broad.runner_from_config(config)
    params = ["GenomicsDBImport",
              "--genomicsdb-workspace-path", out_dir,
              "-L", config["targets"]]
    for sample in trio:
        params += ["-V", sample.gvcf]
    broad_runner.run_gatk(params, "GenomicsDBImport of trio gVCFs")
    return out_dir

def run_genotype_gvcfs(config):
    """GenotypeGVCFs from the merged GenomicsDB input.
    """
    out_file = joint_file(config)
    with file_transaction(config, out_file) as tx_out_file:
        broad_runner = broad.runner_from_config(config)
        params = ["GenotypeGVCFs",
                  "-R", config["reference"],
                  "-V", "gendb://%s" % genomicsdb_dir(config),
                  "-O", tx_out_file]
        broad_runner.run_gatk(params, "Joint genotyping", checks=[do.file_nonempty(tx_out_file)])
    return out_file

def joint_stages(trio, config):
    """GenomicsDBImport followed by GenotypeGVCFs.

    The workspace is removed at cleanup, so it also counts as done once the
    joint calls it feeds have been written.
    """
    db_dir = genomicsdb_dir(config)
    return [Stage("GenomicsDBImport", db_dir, lambda: run_genomicsdb_import(trio, config),
                  requires=[config["targets"]], upstream=[x.gvcf for x in trio],
                  is_complete=lambda d: (not incomplete_genomicsdb(d)
                                         or utils.file_exists(joint_file(config)))),
            Stage("GenotypeGVCFs", joint_file(config), lambda: run_genotype_gvcfs(config),
                  requires=[config["reference"]],
                  upstream=[os.path.join(db_dir, GENOMICSDB_FILES[0])])]
