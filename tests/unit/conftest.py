"""Shared fixtures for unit tests: trio configurations and small VCF files."""
import os

import pytest

VCF_HEADER = """##fileformat=VCFv4.2
##contig=<ID=chr1,length=1000000>
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total depth">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Sample depth">
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{samples}
"""

# position, child, father, mother
TRIO_RECORDS = [
    (100, "1/1", "0/1", "0/1"),  # recessive
    (200, "0/1", "0/0", "0/0"),  # de novo
    (300, "0/1", "0/1", "0/1"),  # neither, carrier child
    (400, "1/1", "0/0", "0/0"),  # de novo, homozygous
    (500, "0/0", "0/0", "0/0"),  # neither
    (600, "1/1", "./.", "0/1"),  # neither, missing father
    (700, "1|1", "0|1", "1|0"),  # recessive, phased
]


def vcf_text(records, samples=("child", "father", "mother")):
    lines = [VCF_HEADER.format(samples="\t".join(samples))]
    for rec in records:
        pos, gts = rec[0], rec[1:]
        lines.append("\t".join(["chr1", str(pos), ".", "A", "G", "50", "PASS", "DP=30", "GT"]
                               + list(gts)) + "\n")
    return "".join(lines)


@pytest.fixture
def write_vcf(tmp_path):
    """Factory writing an uncompressed VCF of (pos, child, father, mother) records."""
    def _write(records, name="calls.vcf", samples=("child", "father", "mother")):
        out_file = str(tmp_path / name)
        with open(out_file, "w") as out_handle:
            out_handle.write(vcf_text(records, samples))
        return out_file
    return _write


@pytest.fixture
def trio_config(tmp_path, monkeypatch):
    """A run configuration with all inputs present inside a temporary directory."""
    monkeypatch.chdir(tmp_path)
    common = tmp_path / "Common"
    in_dir = tmp_path / "in"
    common.mkdir()
    in_dir.mkdir()
    (common / "universe.fasta").write_text(">chr1\nACGTACGTACGT\n")
    (common / "targetsPad100.bed").write_text("chr1\t0\t1000\n")
    for sample in ["child", "father", "mother"]:
        (in_dir / ("%s.fq.gz" % sample)).write_bytes(b"reads")
    return {"reference": str(common / "universe.fasta"),
            "targets": str(common / "targetsPad100.bed"),
            "samples": ["child", "father", "mother"],
            "input_dir": str(in_dir),
            "work_dir": str(tmp_path / "out"),
            "log_dir": str(tmp_path / "log")}


def _touch(fname, content="x"):
    d = os.path.dirname(fname)
    if d and not os.path.exists(d):
        os.makedirs(d)
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    return fname


@pytest.fixture
def touch():
    """Create a non-empty file, making parent directories as needed."""
    return _touch
