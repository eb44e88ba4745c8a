"""
Unit tests for fleet controllers and scaler state.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis

from hashfleet.core.constants import AUTOSCALING_CONFIG_KEY, SCALER_STATUS_KEY
from hashfleet.core.exceptions import FleetControllerError
from hashfleet.jobs.models import ScalerStatus
from hashfleet.scaling.fleet import (
    DockerComposeFleetController,
    StaticFleetController,
    create_fleet_controller,
)
from hashfleet.scaling.state import ScalerState


def make_process(returncode=0, stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(b"", stderr))
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestDockerComposeFleetController:
    """Test the docker compose controller."""

    def test_build_command(self):
        controller = DockerComposeFleetController(project_dir="/srv", service="worker")
        assert controller.build_command(4) == [
            "docker", "compose", "up", "-d", "--scale", "worker=4", "--no-recreate",
        ]

    @pytest.mark.asyncio
    async def test_converge_success(self):
        controller = DockerComposeFleetController(project_dir="/srv", service="worker")
        process = make_process()

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            assert await controller.converge(3) is True

        args, kwargs = spawn.call_args
        assert list(args) == controller.build_command(3)
        assert kwargs["cwd"] == "/srv"

    @pytest.mark.asyncio
    async def test_converge_nonzero_exit(self):
        controller = DockerComposeFleetController()
        process = make_process(returncode=1, stderr=b"no such service")

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            assert await controller.converge(2) is False

    @pytest.mark.asyncio
    async def test_missing_docker_binary(self):
        controller = DockerComposeFleetController()

        with patch("asyncio.create_subprocess_exec",
                   AsyncMock(side_effect=FileNotFoundError("docker"))):
            with pytest.raises(FleetControllerError):
                await controller.converge(2)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        controller = DockerComposeFleetController(timeout=0.01)
        process = make_process()

        async def hang():
            await asyncio.sleep(10)

        process.communicate = hang

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(FleetControllerError, match="timed out"):
                await controller.converge(2)

        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_negative_replicas(self):
        with pytest.raises(FleetControllerError):
            await DockerComposeFleetController().converge(-1)


class TestStaticFleetController:

    @pytest.mark.asyncio
    async def test_records_requests(self):
        controller = StaticFleetController()
        await controller.converge(3)
        await controller.converge(1)

        assert controller.requested == 1
        assert controller.history == [3, 1]


class TestCreateFleetController:

    def test_known_kinds(self):
        assert isinstance(create_fleet_controller("compose"), DockerComposeFleetController)
        assert isinstance(create_fleet_controller("static"), StaticFleetController)

    def test_unknown_kind(self):
        with pytest.raises(FleetControllerError):
            create_fleet_controller("kubernetes")


class TestScalerState:
    """Test scaler status and the autoscaling flag."""

    @pytest.mark.asyncio
    async def test_status_round_trip_with_ttl(self, fake_redis):
        state = ScalerState(fake_redis, status_ttl=10)

        assert await state.publish_status(ScalerStatus.SCALING_UP) is True
        assert await state.get_status() == ScalerStatus.SCALING_UP

        fake_redis.advance(10)
        assert await state.get_status() is None

    @pytest.mark.asyncio
    async def test_publish_failure_is_reported(self, fake_redis):
        fake_redis.failures["set"] = redis.ConnectionError("down")
        state = ScalerState(fake_redis)

        assert await state.publish_status(ScalerStatus.IDLE) is False

    @pytest.mark.asyncio
    async def test_unknown_status_reads_as_none(self, fake_redis):
        await fake_redis.set(SCALER_STATUS_KEY, "confused")
        assert await ScalerState(fake_redis).get_status() is None

    @pytest.mark.asyncio
    async def test_autoscaling_flag(self, fake_redis):
        state = ScalerState(fake_redis)

        assert await state.autoscaling_enabled() is True
        await state.set_autoscaling(False)
        assert await fake_redis.get(AUTOSCALING_CONFIG_KEY) == "false"
        assert await state.autoscaling_enabled() is False
        await state.set_autoscaling(True)
        assert await state.autoscaling_enabled() is True
