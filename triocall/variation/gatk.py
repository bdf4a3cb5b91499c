"""GATK HaplotypeCaller variant calling, producing per-sample gVCFs.
"""
from triocall import broad
from triocall.distributed import resources
from triocall.distributed.transaction import file_transaction
from triocall.pipeline import config_utils
from triocall.pipeline.stage import Stage
from triocall.provenance import do

def haplotype_caller(sample, config, num_cores=1):
    """Call a single sample in gVCF mode over the target regions.

    The paired HMM is the expensive part of HaplotypeCaller and gets its own
    thread pool, sized as a share of the cores held by this sample so the
    sum across concurrently running samples stays within the core budget.
    """
    hmm_threads = resources.subtask_cores(num_cores,
                                          config_utils.get_algorithm("pairhmm_fraction", config, 0.5))
    with file_transaction(config, sample.gvcf) as tx_out_file:
        broad_runner = broad.runner_from_config(config)
        params = ["HaplotypeCaller",
                  "-R", config["reference"],
                  "-I", sample.work_bam,
                  "-O", tx_out_file,
                  "-ERC", "GVCF",
                  "-L", config["targets"],
                  "--native-pair-hmm-threads", hmm_threads]
        broad_runner.run_gatk(params, "Generating gVCF", sample.name,
                              checks=[do.file_nonempty(tx_out_file)])
    return sample.gvcf

def gvcf_stage(sample, config, num_cores=1):
    return Stage("gVCF generation", sample.gvcf,
                 lambda: haplotype_caller(sample, config, num_cores),
                 requires=[config["reference"], config["targets"]], upstream=[sample.work_bam],
                 sample=sample.name)
