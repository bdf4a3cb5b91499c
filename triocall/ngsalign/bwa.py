"""Next-gen alignments with BWA (http://bio-bwa.sourceforge.net/)
"""
from triocall.distributed import resources
from triocall.distributed.transaction import file_transaction
from triocall.pipeline import config_utils
from triocall.pipeline.stage import Stage
from triocall.provenance import do

def get_rg_info(sample):
    """Read group header line, using the sample name as both identifier and sample.
    """
    return r"@RG\tID:{0}\tSM:{0}\tPL:illumina".format(sample.name)

def _get_bwa_mem_cmd(sample, ref_file, config, num_cores):
    bwa = config_utils.get_program("bwa", config)
    bwa_resources = config_utils.get_resources("bwa", config)
    bwa_params = " ".join([str(x) for x in bwa_resources.get("options", [])])
    rg_info = get_rg_info(sample)
    fastq = sample.fastq
    return ("{bwa} mem -M -t {num_cores} {bwa_params} -R '{rg_info}' "
            "-v 1 {ref_file} {fastq}").format(**locals())

def _split_cores(num_cores, config):
    """Divide a sample's cores between bwa and the samtools sort it pipes into.

    samtools `-@` counts threads added to its main thread, so a single core
    leaves sort with none of its own.
    """
    num_cores = max(1, int(num_cores))
    sort_fraction = config_utils.get_algorithm("sort_fraction", config, 0.25)
    sort_cores = resources.subtask_cores(num_cores, sort_fraction) if num_cores > 1 else 0
    return max(1, num_cores - sort_cores), sort_cores

def align_sample(sample, ref_file, config, num_cores=1):
    """Align reads for a sample, writing a coordinate sorted and indexed BAM.

    Pipes bwa-mem output directly into samtools sort to avoid an intermediate
    SAM file, then indexes the sorted BAM in the same transaction so the
    BAM and its .bai appear together. bwa and sort run concurrently and share
    the sample's cores.
    """
    samtools = config_utils.get_program("samtools", config)
    max_mem = config_utils.get_resources("samtools", config).get("memory", "768M")
    timeout = config_utils.get_algorithm("timeout", config)
    bwa_cores, sort_cores = _split_cores(num_cores, config)
    index_cores = max(1, int(num_cores)) - 1
    with file_transaction(config, sample.work_bam) as tx_out_file:
        bwa_cmd = _get_bwa_mem_cmd(sample, ref_file, config, bwa_cores)
        cmd = ("{bwa_cmd} | {samtools} sort -@ {sort_cores} -m {max_mem} "
               "-T {tx_out_file}-sorttmp -o {tx_out_file} -").format(**locals())
        do.run(cmd, "bwa mem alignment", sample.name, [do.file_nonempty(tx_out_file)],
               timeout=timeout)
        do.run("{samtools} index -@ {index_cores} {tx_out_file}".format(**locals()),
               "Index BAM file", sample.name, [do.file_nonempty(tx_out_file + ".bai")],
               timeout=timeout)
    return sample.work_bam

def align_stage(sample, config, num_cores=1):
    return Stage("alignment", sample.work_bam,
                 lambda: align_sample(sample, config["reference"], config, num_cores),
                 requires=[sample.fastq, config["reference"]], sample=sample.name)
