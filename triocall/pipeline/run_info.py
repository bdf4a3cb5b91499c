"""Retrieve run information describing the trio and its files.

Samples are configured as an ordered list of three identifiers: the child
first, followed by the father and the mother. After this point every sample is
addressed through its role on the Trio rather than its position.
"""
import collections
import os

from triocall import utils
from triocall.pipeline import config_utils
from triocall.pipeline.exceptions import MissingInputError

Sample = collections.namedtuple("Sample", ["name", "role", "fastq", "work_bam", "gvcf"])

class Trio(collections.namedtuple("Trio", config_utils.TRIO_ROLES)):
    """Child, father and mother samples, iterating in that order.
    """
    __slots__ = ()

    @property
    def names(self):
        return [x.name for x in self]

    def by_name(self, name):
        for sample in self:
            if sample.name == name:
                return sample
        raise KeyError(name)

def setup_directories(config):
    """Create the working directory and resolve configured paths to absolute ones.
    """
    config = dict(config)
    for key in ["reference", "targets", "input_dir", "work_dir", "log_dir"]:
        if config.get(key):
            config[key] = utils.get_abspath(config[key])
    utils.safe_makedir(config["work_dir"])
    return config

def organize_samples(config):
    """Build the Trio from the ordered sample identifiers in the configuration.
    """
    work_dir = config["work_dir"]
    samples = []
    for role, name in zip(config_utils.TRIO_ROLES, config["samples"]):
        fastq = os.path.join(config["input_dir"], config["fastq_template"].format(sample=name))
        samples.append(Sample(name=name, role=role, fastq=fastq,
                              work_bam=os.path.join(work_dir, "%s.bam" % name),
                              gvcf=os.path.join(work_dir, "%s.g.vcf.gz" % name)))
    return Trio(*samples)

def check_inputs(config, trio):
    """Ensure reference, target and read inputs exist before any processing.
    """
    for fname in [config["reference"], config["targets"]] + [x.fastq for x in trio]:
        if not utils.file_exists(fname):
            raise MissingInputError(fname, "input check")
