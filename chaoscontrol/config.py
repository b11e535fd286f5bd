"""
Harness configuration.

A Config is built once at startup (see run.py) and handed to the Harness,
which passes what each component needs down to it. Nothing reads
configuration from a global.
"""
import os
from collections import namedtuple

from chaoscontrol.client import InvalidRequest, validate_name
from chaoscontrol.common import *
from logzero import logger

from typing import Mapping, Optional


class ConfigError(Exception):
    """The configuration is missing something or is inconsistent."""
    pass


Config = namedtuple('Config', [
    'host',
    'token',
    'project',
    'num_test_instances',
    'threads_per_instance',
    'num_test_disks',
    'threads_per_disk',
    'num_test_snapshots',
    'threads_per_snapshot',
    'fatal_on_server_errors',
    'invalid_state_fatal',
    'max_jitter_ms',
    'request_timeout',
])
Config.__new__.__defaults__ = (
    DEFAULT_CHAOS_PROJECT,
    DEFAULT_CHAOS_NUM_TEST_INSTANCES,
    DEFAULT_CHAOS_THREADS_PER_INSTANCE,
    DEFAULT_CHAOS_NUM_TEST_DISKS,
    DEFAULT_CHAOS_THREADS_PER_DISK,
    DEFAULT_CHAOS_NUM_TEST_SNAPSHOTS,
    DEFAULT_CHAOS_THREADS_PER_SNAPSHOT,
    DEFAULT_CHAOS_FATAL_ON_SERVER_ERRORS,
    DEFAULT_CHAOS_INVALID_STATE_FATAL,
    DEFAULT_CHAOS_MAX_JITTER_MS,
    DEFAULT_CHAOS_REQUEST_TIMEOUT,
)


def _resolve(explicit: Optional[str], env_var: str, what: str,
             environ: Mapping[str, str]) -> str:
    # Prefer an explicitly-passed value to the environment.
    if explicit:
        return explicit
    value = environ.get(env_var)
    if not value:
        raise ConfigError("no {} given and {} is not set".format(what,
                                                                 env_var))
    logger.debug("read %s from %s", what, env_var)
    return value


def validate_config(config: Config) -> Config:
    """
    Check a Config for values the harness cannot work with.

    :param config: The configuration to check.
    :type config: Config
    :return: Config - the same configuration
    :raises ConfigError: on the first problem found
    """
    try:
        validate_name(config.project, "project")
    except InvalidRequest as e:
        raise ConfigError(str(e)) from e

    counts = ('num_test_instances', 'threads_per_instance', 'num_test_disks',
              'threads_per_disk', 'num_test_snapshots',
              'threads_per_snapshot', 'max_jitter_ms')
    for name in counts:
        value = getattr(config, name)
        if not isinstance(value, int) or value < 0:
            raise ConfigError("{} must be a non-negative integer, got "
                              "{!r}".format(name, value))
    if config.request_timeout <= 0:
        raise ConfigError("request_timeout must be positive")
    if not (config.num_test_instances * config.threads_per_instance
            + config.num_test_disks * config.threads_per_disk
            + config.num_test_snapshots * config.threads_per_snapshot):
        raise ConfigError("configuration does not create any actors")
    return config


def config_from_args(args, environ: Optional[Mapping[str, str]] = None
                     ) -> Config:
    """
    Build a Config from parsed command-line arguments.

    The host and token fall back to the CHAOS_CONTROL_HOST and
    CHAOS_CONTROL_TOKEN environment variables.

    :param args: The namespace returned by run.parse_args.
    :type args: argparse.Namespace
    :param environ: Environment to read fallbacks from.
        Optional. (Default: os.environ)
    :type environ: Mapping[str, str]
    :return: Config
    :raises ConfigError: if the host or token cannot be found, or a value is
        invalid
    """
    if environ is None:
        environ = os.environ
    host = _resolve(args.host_uri, DEFAULT_CHAOS_HOST_ENV, "host URI",
                    environ)
    token = _resolve(args.token, DEFAULT_CHAOS_TOKEN_ENV, "token", environ)
    logger.info("Control plane URI: %s", host)
    return validate_config(Config(
        host=host,
        token=token,
        project=args.project,
        num_test_instances=args.num_test_instances,
        threads_per_instance=args.threads_per_instance,
        num_test_disks=args.num_test_disks,
        threads_per_disk=args.threads_per_disk,
        num_test_snapshots=args.num_test_snapshots,
        threads_per_snapshot=args.threads_per_snapshot,
        fatal_on_server_errors=args.fatal_on_server_errors,
        invalid_state_fatal=args.invalid_state_fatal,
        max_jitter_ms=args.max_jitter_ms,
        request_timeout=args.request_timeout,
    ))
