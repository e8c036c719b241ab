import json

import pytest

from simctl_bridge.core.exceptions import ExecutionError
from simctl_bridge.models.simulator import Simulator, SimulatorState


def _simulator(udid):
    return Simulator(
        udid=udid,
        name="iPhone 15",
        os_version="17.2",
        build_version="21C62",
        runtime_name="iOS 17.2",
        state=SimulatorState.SHUTDOWN,
    )


@pytest.fixture
def device_list(simctl_list):
    return json.dumps({"devices": simctl_list["devices"]})


@pytest.mark.asyncio
async def test_available_device_is_valid(service, fake_simctl, device_list):
    fake_simctl.respond("list", stdout=device_list)

    assert await service.is_valid(_simulator("IOS17-IPHONE-15")) is True
    assert fake_simctl.calls == [["xcrun", "simctl", "list", "devices", "--json"]]


@pytest.mark.asyncio
async def test_any_runtime_family_counts(service, fake_simctl, device_list):
    fake_simctl.respond("list", stdout=device_list)

    assert await service.is_valid("WATCH-ULTRA") is True


@pytest.mark.asyncio
async def test_unknown_device_is_invalid(service, fake_simctl, device_list):
    fake_simctl.respond("list", stdout=device_list)

    assert await service.is_valid(_simulator("DELETED")) is False


@pytest.mark.asyncio
async def test_unavailable_device_is_invalid(service, fake_simctl, device_list):
    fake_simctl.respond("list", stdout=device_list)

    assert await service.is_valid(_simulator("IOS16-IPAD")) is False


@pytest.mark.asyncio
async def test_tool_failure_is_invalid(service, fake_simctl):
    fake_simctl.respond("list", error=ExecutionError(["xcrun"], None, "", "No such file or directory"))

    assert await service.is_valid(_simulator("IOS17-IPHONE-15")) is False


@pytest.mark.asyncio
async def test_malformed_listing_is_invalid(service, fake_simctl):
    fake_simctl.respond("list", stdout="[]")

    assert await service.is_valid(_simulator("IOS17-IPHONE-15")) is False


@pytest.mark.asyncio
async def test_repeated_checks_agree(service, fake_simctl, device_list):
    fake_simctl.respond("list", stdout=device_list)
    simulator = _simulator("IOS17-IPHONE-15")

    results = [await service.is_valid(simulator) for _ in range(3)]

    assert results == [True, True, True]


@pytest.mark.asyncio
async def test_malformed_unavailable_device_does_not_matter(service, fake_simctl, simctl_list):
    devices = simctl_list["devices"]
    del devices["com.apple.CoreSimulator.SimRuntime.iOS-16-4"][1]["name"]
    devices["com.apple.CoreSimulator.SimRuntime.watchOS-10-2"][0]["state"] = "Shutting Down (Pending)"
    fake_simctl.respond("list", stdout=json.dumps({"devices": devices}))

    assert await service.is_valid(_simulator("IOS17-IPHONE-15")) is True
