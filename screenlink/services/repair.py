"""Re-pairing a device that lost its binding (app reinstall, cleared storage).

The owner proves control with a fresh code bound to the existing device id;
claiming it runs through the same registrar state machine as first pairing.
"""

from screenlink.models.device import Device
from screenlink.models.pairing import PairingCode
from screenlink.services.code_generator import CodeGenerator
from screenlink.services.devices import require_owned_device
from screenlink.services.registrar import DeviceInfo, DeviceRegistrar


class RepairFlow:
    def __init__(self, generator: CodeGenerator, registrar: DeviceRegistrar):
        self.generator = generator
        self.registrar = registrar

    def request_repair(self, account_id: str, device_id: str) -> PairingCode:
        require_owned_device(self.registrar.devices, account_id, device_id)
        return self.generator.generate_repair(account_id, device_id)

    def complete_repair(
        self,
        account_id: str,
        device_id: str,
        code: str,
        info: DeviceInfo | None = None,
    ) -> Device:
        require_owned_device(self.registrar.devices, account_id, device_id)
        return self.registrar.claim_code(
            account_id, code, info or DeviceInfo(), claimed_device_id=device_id
        )
