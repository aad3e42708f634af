class Workload:

    def __init__(self):
        self.name = None

        # Timed repetitions: creates for CreateLatency, lists for List, events for Watch.
        self.iterations = 100

        # Concurrent creators of the CreateThroughput run.
        self.throughput_fan_out = 100

        # Objects pre-populated before the List run.
        self.list_size = 1000

        # Concurrent watchers of the Watch run.
        self.watcher_count = 1000

        # Filler bytes of the LargeData / LargeMetadata templates.
        self.large_data_size = 10000

        # Upper bound of every poll-until-observed wait after a remote mutation.
        self.settle_timeout_seconds = 60.0

        self.poll_interval_seconds = 0.5

    @staticmethod
    def from_dict(data: dict) -> 'Workload':
        workload = Workload()
        workload.name = data.get('name')
        workload.iterations = data.get('iterations', workload.iterations)
        workload.throughput_fan_out = data.get('throughputFanOut', workload.throughput_fan_out)
        workload.list_size = data.get('listSize', workload.list_size)
        workload.watcher_count = data.get('watcherCount', workload.watcher_count)
        workload.large_data_size = data.get('largeDataSize', workload.large_data_size)
        workload.settle_timeout_seconds = data.get('settleTimeoutSeconds', workload.settle_timeout_seconds)
        workload.poll_interval_seconds = data.get('pollIntervalSeconds', workload.poll_interval_seconds)
        workload.validate()
        return workload

    def validate(self):
        for attribute in ('iterations', 'throughput_fan_out', 'watcher_count'):
            if getattr(self, attribute) < 1:
                raise ValueError(f"Workload {attribute} must be positive, got {getattr(self, attribute)}")
        if self.list_size < 0:
            raise ValueError(f"Workload list_size must not be negative, got {self.list_size}")
        if self.large_data_size < 2:
            raise ValueError(f"Workload large_data_size must be at least 2, got {self.large_data_size}")

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'iterations': self.iterations,
            'throughputFanOut': self.throughput_fan_out,
            'listSize': self.list_size,
            'watcherCount': self.watcher_count,
            'largeDataSize': self.large_data_size,
            'settleTimeoutSeconds': self.settle_timeout_seconds,
            'pollIntervalSeconds': self.poll_interval_seconds,
        }
