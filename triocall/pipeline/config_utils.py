"""Loads configurations from .yaml files and expands environment variables.
"""
import copy
import os

import toolz as tz
import yaml

from triocall.pipeline.exceptions import ConfigurationError

TRIO_ROLES = ("child", "father", "mother")

DEFAULT_CONFIG = {
    "samples": list(TRIO_ROLES),
    "input_dir": "in",
    "work_dir": "out",
    "fastq_template": "{sample}.fq.gz",
    "log_dir": "log",
    "keep_intermediates": False,
    "algorithm": {"min_qual": 10,
                  "min_depth": 10,
                  "pairhmm_fraction": 0.5,
                  "sort_fraction": 0.25,
                  "timeout": None},
    "resources": {"cores": {"max": 10}},
}

# ## Retrieval functions

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    config = _expand_paths(config)
    if "resources" not in config:
        config["resources"] = {}
    # lowercase resource names, the preferred way to specify, for back-compatibility
    newr = {}
    for k, v in config["resources"].items():
        if k.lower() != k:
            newr[k.lower()] = v
    config["resources"].update(newr)
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def merge_defaults(config):
    """Fill in missing settings from the defaults, merging nested sections.
    """
    return tz.merge_with(_merge_section, DEFAULT_CONFIG, config or {})

def _merge_section(vals):
    vals = [x for x in vals if x is not None] or [None]
    if all(isinstance(x, dict) for x in vals):
        return tz.merge_with(_merge_section, *vals)
    return copy.deepcopy(vals[-1])

def update_w_args(config, args):
    """Override configuration values with those supplied on the command line.
    """
    config = copy.deepcopy(config)
    simple = {"reference": "reference", "targets": "targets", "samples": "samples",
              "workdir": "work_dir", "input_dir": "input_dir"}
    for arg_name, key in simple.items():
        val = getattr(args, arg_name, None)
        if val:
            config[key] = val
    if getattr(args, "worker_ceiling", None):
        config = tz.assoc_in(config, ["resources", "cores", "max"], args.worker_ceiling)
    if getattr(args, "timeout", None):
        config = tz.assoc_in(config, ["algorithm", "timeout"], args.timeout)
    if getattr(args, "keep_intermediates", False):
        config["keep_intermediates"] = True
    return config

def validate(config):
    """Check required settings, raising ConfigurationError on problems.
    """
    for key in ["reference", "targets"]:
        if not config.get(key):
            raise ConfigurationError("Configuration requires a `%s` file" % key)
    samples = config.get("samples") or []
    if len(samples) != len(TRIO_ROLES):
        raise ConfigurationError("Expected exactly %s sample identifiers ordered as %s, found: %s"
                                 % (len(TRIO_ROLES), ", ".join(TRIO_ROLES), samples))
    if len(set(samples)) != len(samples):
        raise ConfigurationError("Sample identifiers must be unique: %s" % samples)
    ceiling = tz.get_in(["resources", "cores", "max"], config)
    if ceiling is not None and int(ceiling) < 1:
        raise ConfigurationError("Worker ceiling must be at least 1, found %s" % ceiling)
    for key in ["min_qual", "min_depth"]:
        if float(tz.get_in(["algorithm", key], config, 0)) < 0:
            raise ConfigurationError("algorithm %s must not be negative" % key)
    return config

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_program(name, config, default=None):
    """Retrieve the command for a program, defaulting to the name on the PATH.
    """
    pconfig = config.get("resources", {}).get(name, {})
    if not isinstance(pconfig, dict):
        pconfig = {"cmd": pconfig}
    return expand_path(pconfig.get("cmd") or default or name)

def get_algorithm(key, config, default=None):
    return tz.get_in(["algorithm", key], config, default)
