import argparse

import pytest

from triocall.pipeline import config_utils
from triocall.pipeline.exceptions import ConfigurationError


def _args(**kwargs):
    defaults = {"reference": None, "targets": None, "samples": None, "workdir": None,
                "input_dir": None, "worker_ceiling": None, "timeout": None,
                "keep_intermediates": False}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def _valid(**kwargs):
    config = config_utils.merge_defaults({"reference": "ref.fa", "targets": "targets.bed"})
    config.update(kwargs)
    return config


def test_load_config_expands_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TRIO_REF", "/data/ref")
    config_file = tmp_path / "trio.yaml"
    config_file.write_text("reference: $TRIO_REF/universe.fasta\n"
                           "samples: [kid, dad, mum]\n"
                           "resources:\n  GATK:\n    docker: broadinstitute/gatk\n")
    config = config_utils.load_config(str(config_file))
    assert config["reference"] == "/data/ref/universe.fasta"
    assert config["samples"] == ["kid", "dad", "mum"]
    assert config["resources"]["gatk"] == {"docker": "broadinstitute/gatk"}


def test_load_empty_config(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    assert config_utils.load_config(str(config_file)) == {"resources": {}}


def test_merge_defaults_keeps_nested_settings():
    config = config_utils.merge_defaults({"algorithm": {"min_qual": 30},
                                          "resources": {"cores": {"max": 4}}})
    assert config["algorithm"]["min_qual"] == 30
    assert config["algorithm"]["min_depth"] == 10
    assert config["resources"]["cores"]["max"] == 4
    assert config["samples"] == ["child", "father", "mother"]


def test_merge_defaults_does_not_share_default_lists():
    config = config_utils.merge_defaults({})
    config["samples"].append("sibling")
    assert config_utils.DEFAULT_CONFIG["samples"] == ["child", "father", "mother"]


def test_command_line_overrides_yaml():
    config = {"reference": "yaml.fa", "samples": ["a", "b", "c"]}
    args = _args(reference="cl.fa", samples=["x", "y", "z"], worker_ceiling=4, timeout=60,
                 workdir="results", keep_intermediates=True)
    config = config_utils.update_w_args(config, args)
    assert config["reference"] == "cl.fa"
    assert config["samples"] == ["x", "y", "z"]
    assert config["resources"]["cores"]["max"] == 4
    assert config["algorithm"]["timeout"] == 60
    assert config["work_dir"] == "results"
    assert config["keep_intermediates"] is True


def test_unset_arguments_keep_yaml_values():
    config = config_utils.update_w_args({"reference": "yaml.fa"}, _args())
    assert config == {"reference": "yaml.fa"}


def test_validate_accepts_trio():
    assert config_utils.validate(_valid())


@pytest.mark.parametrize("samples", [
    ["child", "father"],
    ["child", "father", "mother", "sibling"],
    ["child", "child", "mother"],
    [],
])
def test_validate_requires_three_unique_samples(samples):
    with pytest.raises(ConfigurationError):
        config_utils.validate(_valid(samples=samples))


@pytest.mark.parametrize("key", ["reference", "targets"])
def test_validate_requires_inputs(key):
    with pytest.raises(ConfigurationError):
        config_utils.validate(_valid(**{key: None}))


def test_validate_rejects_zero_ceiling():
    with pytest.raises(ConfigurationError):
        config_utils.validate(_valid(resources={"cores": {"max": 0}}))


def test_get_program_defaults_to_name():
    assert config_utils.get_program("bcftools", {}) == "bcftools"
    assert config_utils.get_program("gatk", {"resources": {"gatk": {"cmd": "/opt/gatk"}}}) == "/opt/gatk"
    assert config_utils.get_program("docker", {"resources": {"docker": "sudo docker"}}) == "sudo docker"
