"""Classify trio variants by inheritance pattern.

Each record of the filtered joint call set carries one genotype per trio
member. Genotypes are looked up by sample name and held in named child,
father and mother fields, then checked against two candidate patterns:

  - autosomal recessive: child homozygous alternate, both parents heterozygous
    carriers.
  - de novo dominant: child carries the alternate allele while both parents are
    homozygous reference.

Patterns are evaluated independently, so a record may land in neither, one or
both candidate sets. A missing genotype never satisfies a pattern. The de novo
pattern does not consider read depth at the parental calls, beyond the depth
filter already applied to the whole site.

Haploid calls follow the diploid rules, so a `1` call on a hemizygous
chromosome counts as homozygous alternate and can satisfy either pattern for
the child. Sex chromosomes are not treated differently.
"""
import collections
import os

import pysam

from triocall.distributed.transaction import file_transaction
from triocall.log import logger
from triocall.pipeline import config_utils
from triocall.pipeline.exceptions import MalformedRecordError, StageExecutionError
from triocall.pipeline.stage import Stage

HOM_REF = "hom_ref"
HET = "het"
HOM_ALT = "hom_alt"
UNKNOWN = "unknown"

TrioCalls = collections.namedtuple("TrioCalls", config_utils.TRIO_ROLES)
Variant = collections.namedtuple("Variant", ["chrom", "pos", "ref", "alts", "qual", "depth",
                                             "calls", "record"])

def genotype_from_gt(gt):
    """Convert a tuple of allele indexes, as reported by pysam, into a genotype call.
    """
    if not gt or any(a is None for a in gt):
        return UNKNOWN
    alleles = set(gt)
    if alleles == set([0]):
        return HOM_REF
    elif len(alleles) == 1:
        return HOM_ALT
    else:
        return HET

# ## Inheritance patterns

def is_recessive(calls):
    return calls.child == HOM_ALT and calls.father == HET and calls.mother == HET

def is_de_novo(calls):
    return (calls.child in (HET, HOM_ALT)
            and calls.father == HOM_REF and calls.mother == HOM_REF)

PATTERNS = collections.OrderedDict([("recessive", is_recessive),
                                    ("de_novo", is_de_novo)])

CANDIDATE_FILES = {"recessive": "AR_candidates.vcf.gz",
                   "de_novo": "de_novo_candidates.vcf.gz"}

def classify(variants):
    """Split variants into recessive and de novo candidates, preserving input order.
    """
    recessive, de_novo = [], []
    for v in variants:
        if is_recessive(v.calls):
            recessive.append(v)
        if is_de_novo(v.calls):
            de_novo.append(v)
    return recessive, de_novo

# ## Reading records

def _depth(rec):
    depth = rec.info.get("DP")
    if isinstance(depth, (list, tuple)):
        depth = depth[0] if depth else None
    return int(depth) if depth is not None else None

def to_variant(rec, trio):
    """Build a Variant from a pysam record, resolving genotypes by sample name.
    """
    if len(rec.samples) != len(config_utils.TRIO_ROLES):
        raise MalformedRecordError("%s:%s has %s genotype calls, expected %s" %
                                   (rec.chrom, rec.pos, len(rec.samples),
                                    len(config_utils.TRIO_ROLES)))
    try:
        calls = TrioCalls(*[genotype_from_gt(rec.samples[sample.name]["GT"]) for sample in trio])
        qual = float(rec.qual) if rec.qual is not None else None
        depth = _depth(rec)
    except (KeyError, ValueError, TypeError) as e:
        raise MalformedRecordError("%s:%s could not be parsed: %s" % (rec.chrom, rec.pos, e))
    return Variant(rec.chrom, rec.pos, rec.ref, rec.alts, qual, depth, calls, rec)

def _check_header(vcf_in, trio, in_file):
    header_samples = list(vcf_in.header.samples)
    missing = [x for x in trio.names if x not in header_samples]
    if missing:
        raise StageExecutionError("Samples %s not found in %s, which contains: %s" %
                                  (", ".join(missing), in_file, ", ".join(header_samples)))

def _iter_variants(vcf_in, trio):
    for rec in vcf_in:
        try:
            yield to_variant(rec, trio)
        except MalformedRecordError as e:
            logger.warning("Skipping malformed variant record: %s" % e)

def read_variants(in_file, trio):
    """Retrieve all well formed variants from a VCF, in file order.
    """
    with pysam.VariantFile(in_file) as vcf_in:
        _check_header(vcf_in, trio, in_file)
        return list(_iter_variants(vcf_in, trio))

# ## Writing candidate sets

def write_candidates(in_file, trio, predicate, out_file, config=None):
    """Write records matching an inheritance pattern to a bgzipped VCF.
    """
    count = 0
    with pysam.VariantFile(in_file) as vcf_in:
        _check_header(vcf_in, trio, in_file)
        with file_transaction(config, out_file) as tx_out_file:
            with pysam.VariantFile(tx_out_file, "wz", header=vcf_in.header) as vcf_out:
                for v in _iter_variants(vcf_in, trio):
                    if predicate(v.calls):
                        vcf_out.write(v.record)
                        count += 1
    logger.info("%s candidate variants written to %s" % (count, out_file))
    return out_file

def candidate_file(pattern, config):
    return os.path.join(config["work_dir"], CANDIDATE_FILES[pattern])

def candidate_stages(trio, config, in_file):
    """One stage per inheritance pattern, independent readers of the same filtered calls.
    """
    out = []
    for pattern, predicate in PATTERNS.items():
        out_file = candidate_file(pattern, config)
        out.append(Stage("%s candidates" % pattern, out_file,
                         _write_fn(in_file, trio, predicate, out_file, config),
                         upstream=[in_file]))
    return out

def _write_fn(in_file, trio, predicate, out_file, config):
    return lambda: write_candidates(in_file, trio, predicate, out_file, config)
