from enum import Enum


class ResourceKind(Enum):
    """
    All kinds of resources an antagonist can act on.
    """
    INSTANCE = "instance"
    DISK = "disk"
    SNAPSHOT = "snapshot"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


# The state enums below use the values the control plane puts on the wire, so
# a probe can build a member straight from a response body.
class InstanceState(Enum):
    """
    All lifecycle states an instance can report (its "run_state").
    """
    CREATING = "creating"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    REBOOTING = "rebooting"
    MIGRATING = "migrating"
    REPAIRING = "repairing"
    FAILED = "failed"
    DESTROYED = "destroyed"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


class DiskState(Enum):
    """
    All lifecycle states a disk can report.
    """
    CREATING = "creating"
    DETACHED = "detached"
    IMPORT_READY = "import_ready"
    IMPORTING_FROM_URL = "importing_from_url"
    IMPORTING_FROM_BULK_WRITES = "importing_from_bulk_writes"
    FINALIZING = "finalizing"
    MAINTENANCE = "maintenance"
    ATTACHING = "attaching"
    ATTACHED = "attached"
    DETACHING = "detaching"
    DESTROYED = "destroyed"
    FAULTED = "faulted"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


class SnapshotState(Enum):
    """
    All lifecycle states a snapshot can report.
    """
    CREATING = "creating"
    READY = "ready"
    FAULTED = "faulted"
    DESTROYED = "destroyed"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


STATE_ENUMS = {
    ResourceKind.INSTANCE: InstanceState,
    ResourceKind.DISK: DiskState,
    ResourceKind.SNAPSHOT: SnapshotState,
}

# Useful for validating boolean user input
true_list = [
   'true', '1', 't', 'y', 'yes'
]
false_list = [
   'false', '0', 'f', 'n', 'no'
]

GIBIBYTE = 1024 * 1024 * 1024

# Chaos defaults
# Please keep defaults in lexically acending order by name
DEFAULT_CHAOS_DISK_BLOCK_SIZE=512
DEFAULT_CHAOS_DISK_SIZE=GIBIBYTE
DEFAULT_CHAOS_FATAL_ON_SERVER_ERRORS=False
DEFAULT_CHAOS_HOST_ENV="CHAOS_CONTROL_HOST"
DEFAULT_CHAOS_INSTANCE_MEMORY=GIBIBYTE
DEFAULT_CHAOS_INSTANCE_NCPUS=1
DEFAULT_CHAOS_INVALID_STATE_FATAL=True
DEFAULT_CHAOS_MAX_JITTER_MS=100
DEFAULT_CHAOS_NUM_TEST_DISKS=4
DEFAULT_CHAOS_NUM_TEST_INSTANCES=4
DEFAULT_CHAOS_NUM_TEST_SNAPSHOTS=2
DEFAULT_CHAOS_PROJECT="chaoscontrol-stress"
DEFAULT_CHAOS_REQUEST_TIMEOUT=120
DEFAULT_CHAOS_THREADS_PER_DISK=4
DEFAULT_CHAOS_THREADS_PER_INSTANCE=4
DEFAULT_CHAOS_THREADS_PER_SNAPSHOT=2
DEFAULT_CHAOS_TOKEN_ENV="CHAOS_CONTROL_TOKEN"
