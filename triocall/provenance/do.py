"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import os
import signal
import subprocess
import threading

from triocall import utils
from triocall.log import logger, logger_cl
from triocall.pipeline.exceptions import MissingArtifactError, StageExecutionError


def run(cmd, descr=None, sample=None, checks=None, log_error=True, env=None, timeout=None):
    """Run the provided command, logging details and checking for errors.

    Raises StageExecutionError on a non-zero exit status or when the command
    runs longer than `timeout` seconds, and MissingArtifactError when one of the
    post-run `checks` fails.
    """
    if descr:
        descr = _descr_str(descr, sample)
        logger.debug(descr)
    try:
        logger_cl.debug(" ".join(str(x) for x in cmd) if not isinstance(cmd, str) else cmd)
        _do_run(cmd, checks, env=env, timeout=timeout, descr=descr, sample=sample)
    except StageExecutionError:
        if log_error:
            logger.exception()
        raise

def _descr_str(descr, sample):
    if sample:
        descr = "{0} : {1}".format(descr, sample)
    return descr

def find_bash():
    for test_bash in [utils.which("bash"), "/bin/bash", "/usr/bin/bash", "/usr/local/bin/bash"]:
        if test_bash and os.path.exists(test_bash):
            return test_bash
    raise IOError("Could not find bash in any standard location. Needed for unix pipes")

def _normalize_cmd_args(cmd):
    """Normalize subprocess arguments to handle list commands, string and pipes.
    Piped commands set pipefail and require use of bash to help with debugging
    intermediate errors.
    """
    if isinstance(cmd, str):
        if cmd.find(" | ") > 0:
            return "set -o pipefail; " + cmd, True, find_bash()
        else:
            return cmd, True, None
    else:
        return [str(x) for x in cmd], False, None

def _do_run(cmd, checks, env=None, timeout=None, descr=None, sample=None):
    """Perform running and check results, raising errors for issues.
    """
    cmd, shell_arg, executable_arg = _normalize_cmd_args(cmd)
    s = subprocess.Popen(
        cmd,
        shell=shell_arg,
        executable=executable_arg,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        close_fds=True,
        env=env,
        start_new_session=True,
    )
    timer = None
    timed_out = threading.Event()
    if timeout:
        def _kill():
            timed_out.set()
            # pipes run under bash, so stop every process in the pipeline
            try:
                os.killpg(s.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
        timer = threading.Timer(timeout, _kill)
        timer.start()
    debug_stdout = collections.deque(maxlen=100)
    try:
        for line in iter(s.stdout.readline, b""):
            line = line.decode("utf-8", errors="replace")
            if line.rstrip():
                debug_stdout.append(line)
                logger.debug(line.rstrip())
        exitcode = s.wait()
    finally:
        s.stdout.close()
        if timer:
            timer.cancel()
    error_msg = " ".join(cmd) if not isinstance(cmd, str) else cmd
    if timed_out.is_set():
        raise StageExecutionError("Command timed out after %s seconds: %s" % (timeout, error_msg),
                                  descr, sample)
    if exitcode != 0:
        error_msg += "\n"
        error_msg += "".join(debug_stdout)
        raise StageExecutionError("Command exited with status %s: %s" % (exitcode, error_msg),
                                  descr, sample)
    # Check for problems not identified by shell return codes
    if checks:
        for check in checks:
            missing = check()
            if missing:
                raise MissingArtifactError(missing, descr, sample)

# checks for validating run completed successfully, returning the missing file

def file_nonempty(target_file):
    def check():
        if not utils.file_exists(target_file):
            logger.info("Did not find non-empty output file {0}".format(target_file))
            return target_file
    return check

def file_exists(target_file):
    def check():
        if not os.path.exists(target_file):
            logger.info("Did not find output file {0}".format(target_file))
            return target_file
    return check
