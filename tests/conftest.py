import json

import pytest

from simctl_bridge.services.simulator_service import SimulatorService
from simctl_bridge.utils.process_utils import ProcessUtils

IOS_17 = "com.apple.CoreSimulator.SimRuntime.iOS-17-2"
IOS_16 = "com.apple.CoreSimulator.SimRuntime.iOS-16-4"
WATCH_10 = "com.apple.CoreSimulator.SimRuntime.watchOS-10-2"


def _device(udid, name, available=True, state="Shutdown"):
    return {
        "udid": udid,
        "name": name,
        "isAvailable": available,
        "state": state,
        "dataPath": f"/Users/ci/Library/Developer/CoreSimulator/Devices/{udid}/data",
        "logPath": f"/Users/ci/Library/Logs/CoreSimulator/{udid}",
    }


@pytest.fixture
def simctl_list():
    """A `simctl list --json` payload with two iOS runtimes and one watchOS runtime."""
    return {
        "devicetypes": [],
        "runtimes": [
            {"identifier": IOS_16, "isAvailable": True, "version": "16.4", "buildversion": "20E247", "name": "iOS 16.4"},
            {"identifier": IOS_17, "isAvailable": True, "version": "17.2", "buildversion": "21C62", "name": "iOS 17.2"},
            {"identifier": WATCH_10, "isAvailable": True, "version": "10.2", "buildversion": "21S364", "name": "watchOS 10.2"},
        ],
        "devices": {
            IOS_16: [
                _device("IOS16-IPHONE-14", "iPhone 14"),
                _device("IOS16-IPAD", "iPad Pro (11-inch)", available=False),
            ],
            IOS_17: [
                _device("IOS17-IPHONE-15-PRO", "iPhone 15 Pro", state="Booted"),
                _device("IOS17-IPHONE-9", "iPhone 9"),
                _device("IOS17-IPHONE-15", "iPhone 15"),
            ],
            WATCH_10: [
                _device("WATCH-ULTRA", "Apple Watch Ultra 2 (49mm)"),
            ],
        },
        "pairs": {},
    }


class FakeSimctl:
    """Stands in for ProcessUtils.run_command, answering per simctl subcommand."""

    def __init__(self):
        self.calls = []
        self.responses = {}

    def respond(self, subcommand, stdout="", stderr="", error=None):
        self.responses[subcommand] = (stdout, stderr, error)

    async def __call__(self, command, env=None):
        self.calls.append(command)
        subcommand = command[2]
        stdout, stderr, error = self.responses[subcommand]
        if error is not None:
            raise error
        return stdout, stderr


@pytest.fixture
def fake_simctl(monkeypatch):
    fake = FakeSimctl()
    monkeypatch.setattr(ProcessUtils, "run_command", fake)
    return fake


@pytest.fixture
def service():
    return SimulatorService(xcrun="xcrun", poll_interval=0.01, launch_timeout=0.2)
