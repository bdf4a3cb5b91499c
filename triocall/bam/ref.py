"""Prepare reference genome indexes used by alignment and variant calling.
"""
import os

from triocall import broad, utils
from triocall.distributed.transaction import file_transaction
from triocall.pipeline import config_utils
from triocall.pipeline.stage import Stage
from triocall.provenance import do

BWA_INDEX_EXTS = [".amb", ".ann", ".bwt", ".pac", ".sa"]

def bwa_index_file(ref_file):
    return ref_file + ".bwt"

def fasta_idx_file(ref_file):
    return ref_file + ".fai"

def dict_file(ref_file):
    return "%s.dict" % utils.splitext_plus(ref_file)[0]

def bwa_index(ref_file, config):
    """Build bwa index files next to the reference.

    bwa writes several files from one prefix, so the .bwt file marks completion
    and is written last by `bwa index`.
    """
    bwa = config_utils.get_program("bwa", config)
    cmd = "{bwa} index {ref_file}".format(**locals())
    do.run(cmd, "Indexing the reference genome", checks=[do.file_nonempty(bwa_index_file(ref_file))],
           timeout=config_utils.get_algorithm("timeout", config))
    return bwa_index_file(ref_file)

def fasta_idx(ref_file, config):
    """Retrieve samtools style fasta index.
    """
    samtools = config_utils.get_program("samtools", config)
    cmd = "{samtools} faidx {ref_file}".format(**locals())
    do.run(cmd, "samtools faidx", checks=[do.file_nonempty(fasta_idx_file(ref_file))],
           timeout=config_utils.get_algorithm("timeout", config))
    return fasta_idx_file(ref_file)

def sequence_dictionary(ref_file, config):
    """Create the Picard style sequence dictionary required by GATK.
    """
    out_file = dict_file(ref_file)
    with file_transaction(config, out_file) as tx_out_file:
        broad_runner = broad.runner_from_config(config)
        params = ["CreateSequenceDictionary", "-R", ref_file, "-O", tx_out_file]
        broad_runner.run_gatk(params, "Creating the dictionary file of the reference genome")
    return out_file

def prep_stages(config):
    """Idempotent stages preparing the reference, run sequentially before alignment.
    """
    ref_file = config["reference"]
    return [Stage("bwa index", bwa_index_file(ref_file), lambda: bwa_index(ref_file, config),
                  requires=[ref_file], is_complete=lambda _: is_indexed(ref_file)),
            Stage("samtools faidx", fasta_idx_file(ref_file), lambda: fasta_idx(ref_file, config),
                  requires=[ref_file]),
            Stage("sequence dictionary", dict_file(ref_file),
                  lambda: sequence_dictionary(ref_file, config), requires=[ref_file])]

def is_indexed(ref_file):
    return all(os.path.exists(ref_file + ext) for ext in BWA_INDEX_EXTS)
