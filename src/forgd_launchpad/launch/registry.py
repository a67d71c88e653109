from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, Iterator, Optional

from loguru import logger

from forgd_launchpad.amm.deployer import LiquidityDeployer
from forgd_launchpad.amm.interfaces import NativeWrapper, PoolCoordinator
from forgd_launchpad.common.enums import ErrorCode
from forgd_launchpad.common.errors import ConfigError
from forgd_launchpad.common.model import CurveParams, FeeConfig
from forgd_launchpad.launch.instance import LaunchInstance
from forgd_launchpad.ledger import Ledger


class LaunchRegistry:
    """
    Owns every LaunchInstance, keyed by instance id, and shares the ledger / AMM collaborators between them.

    Also hands out position salts: instance id plus a per-instance monotonic counter.
    """

    def __init__(
        self,
        ledger: Ledger,
        coordinator: PoolCoordinator,
        wrapper: Optional[NativeWrapper] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ledger = ledger
        self.coordinator = coordinator
        self.wrapper = wrapper
        self.clock = clock
        self._instances: Dict[str, LaunchInstance] = {}
        self._salt_counters: Dict[str, int] = defaultdict(int)

    def create(
        self,
        owner: str,
        token: str,
        params: CurveParams,
        fee_config: FeeConfig,
        instance_id: Optional[str] = None,
        **options,
    ) -> LaunchInstance:
        instance_id = instance_id or f"launch-{len(self._instances) + 1}"
        if instance_id in self._instances:
            raise ConfigError(ErrorCode.NOT_CONFIGURED, "Instance id already registered.", {"id": instance_id})

        instance = LaunchInstance(
            instance_id=instance_id,
            owner=owner,
            token=token,
            params=params,
            fee_config=fee_config,
            ledger=self.ledger,
            deployer_factory=self._deployer_for,
            clock=self.clock,
            salt_provider=lambda: self.next_salt(instance_id),
            **options,
        )
        self._instances[instance_id] = instance
        logger.info(f"[REGISTRY] Created {instance_id} for token {token} owned by {owner}")
        return instance

    def _deployer_for(self, holder: str) -> LiquidityDeployer:
        return LiquidityDeployer(self.coordinator, self.ledger, holder, wrapper=self.wrapper)

    def get(self, instance_id: str) -> LaunchInstance:
        try:
            return self._instances[instance_id]
        except KeyError:
            raise ConfigError(ErrorCode.NOT_CONFIGURED, "Unknown instance.", {"id": instance_id})

    def next_salt(self, instance_id: str) -> str:
        self._salt_counters[instance_id] += 1
        return f"{instance_id}:{self._salt_counters[instance_id]}"

    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._instances

    def __iter__(self) -> Iterator[LaunchInstance]:
        return iter(self._instances.values())

    def __len__(self) -> int:
        return len(self._instances)
