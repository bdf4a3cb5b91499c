"""Run Broad's GATK4 tools from Python, locally or inside a docker image.

With `resources: gatk: docker: <image>` every command runs in a container
where the directories of the run are mounted at their host paths, so file
arguments are passed through unchanged.
"""
import os

from triocall import utils
from triocall.distributed.transaction import get_base_tmpdir
from triocall.pipeline import config_utils
from triocall.provenance import do

def get_default_jvm_opts(tmp_dir=None):
    """Retrieve default JVM tuning options.

    Serial GC avoids several concurrently running Java processes each spinning
    up collector threads for every core on the machine.
    """
    opts = ["-XX:+UseSerialGC"]
    if tmp_dir:
        opts.append("-Djava.io.tmpdir=%s" % tmp_dir)
    return opts

class BroadRunner:
    """Simplify running GATK commands from the trio configuration.
    """
    def __init__(self, config):
        self._config = config
        self._resources = config_utils.get_resources("gatk", config)
        self._gatk = config_utils.get_program("gatk", config)

    def _mount_dirs(self):
        dirs = [self._config.get("work_dir"), self._config.get("input_dir")]
        dirs += [os.path.dirname(self._config[k]) for k in ["reference", "targets"]
                 if self._config.get(k)]
        # transactional outputs are written below the temporary directory base
        dirs.append(utils.get_abspath(get_base_tmpdir(self._config, os.getcwd())))
        dirs.append(os.getcwd())
        out = []
        for d in dirs:
            if d and d not in out:
                out.append(d)
        return out

    def _docker_prefix(self):
        image = self._resources.get("docker")
        if not image:
            return ""
        docker = config_utils.get_program("docker", self._config)
        mounts = " ".join("-v {0}:{0}".format(d) for d in self._mount_dirs())
        return "{docker} run --rm {mounts} -w {cwd} {image} ".format(
            docker=docker, mounts=mounts, cwd=os.getcwd(), image=image)

    def cl_gatk(self, params, tmp_dir=None):
        """Build the command line for a GATK tool and its parameters.
        """
        jvm_opts = list(self._resources.get("jvm_opts", ["-Xms750m", "-Xmx2g"]))
        jvm_opts += get_default_jvm_opts(tmp_dir)
        params = [str(x) for x in params] + [str(x) for x in self._resources.get("options", [])]
        return "%s%s --java-options '%s' %s" % (self._docker_prefix(), self._gatk,
                                                " ".join(jvm_opts), " ".join(params))

    def run_gatk(self, params, descr, sample=None, tmp_dir=None, checks=None):
        """Top level interface to running a GATK command.
        """
        do.run(self.cl_gatk(params, tmp_dir), descr, sample, checks,
               timeout=config_utils.get_algorithm("timeout", self._config))

def runner_from_config(config):
    return BroadRunner(config)
