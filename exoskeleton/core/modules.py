"""Module catalog - registered capability modules and per-identity slots

Descriptors are global and immutable once registered; registering a key
twice is an error, not a no-op. Each identity has a bounded number of
activation slots (larger for the privileged cohort).

The catalog validates and records activations. Moving premium payments to
the treasury is the ledger's job, after the activation is committed.
"""

from __future__ import annotations

from .errors import ErrorCode, invalid
from .models import ModuleActivation, ModuleDescriptor, is_zero_address


class ModuleCatalog:
    """Module descriptors plus activation slots, over ledger-owned maps."""

    descriptors: dict[str, ModuleDescriptor]
    activations: dict[int, dict[str, ModuleActivation]]

    def __init__(
        self,
        descriptors: dict[str, ModuleDescriptor] | None = None,
        activations: dict[int, dict[str, ModuleActivation]] | None = None,
        privileged_capacity: int = 8,
        standard_capacity: int = 5,
    ) -> None:
        self.descriptors = descriptors if descriptors is not None else {}
        self.activations = activations if activations is not None else {}
        self.privileged_capacity = privileged_capacity
        self.standard_capacity = standard_capacity

    # ===== REGISTRATION =====

    def check_register(
        self,
        key: str,
        capability_ref: str,
        premium: bool,
        premium_cost: int,
    ) -> None:
        """Raise InvalidOperation if the module cannot be registered."""
        if not key:
            raise invalid("Module key must not be empty", ErrorCode.EMPTY_KEY)
        if key in self.descriptors:
            raise invalid(
                f"Module '{key}' is already registered",
                ErrorCode.MODULE_ALREADY_REGISTERED,
                key=key,
            )
        if is_zero_address(capability_ref):
            raise invalid("Module capability reference must be set", ErrorCode.ZERO_ADDRESS)
        if premium_cost < 0:
            raise invalid("Premium cost must not be negative", premium_cost=premium_cost)

    def register(
        self,
        key: str,
        capability_ref: str,
        premium: bool,
        premium_cost: int,
        height: int,
    ) -> ModuleDescriptor:
        self.check_register(key, capability_ref, premium, premium_cost)
        descriptor = ModuleDescriptor(
            key=key,
            capability_ref=capability_ref,
            premium=premium,
            premium_cost=premium_cost,
            registered_at=height,
        )
        self.descriptors[key] = descriptor
        return descriptor

    def get(self, key: str) -> ModuleDescriptor | None:
        return self.descriptors.get(key)

    # ===== ACTIVATION =====

    def capacity(self, privileged: bool) -> int:
        return self.privileged_capacity if privileged else self.standard_capacity

    def is_active(self, identity_id: int, key: str) -> bool:
        activation = self.activations.get(identity_id, {}).get(key)
        return activation is not None and activation.active

    def active_count(self, identity_id: int) -> int:
        return sum(1 for a in self.activations.get(identity_id, {}).values() if a.active)

    def active_keys(self, identity_id: int) -> list[str]:
        """Active module keys in first-activation order."""
        return [
            key for key, a in self.activations.get(identity_id, {}).items() if a.active
        ]

    def check_activate(
        self,
        identity_id: int,
        key: str,
        payment: int,
        privileged: bool,
    ) -> ModuleDescriptor:
        """Validate an activation and return the module's descriptor."""
        descriptor = self.descriptors.get(key)
        if descriptor is None:
            raise invalid(f"Module '{key}' not found", ErrorCode.MODULE_NOT_FOUND, key=key)
        if self.is_active(identity_id, key):
            raise invalid(
                f"Module '{key}' is already active for identity {identity_id}",
                ErrorCode.MODULE_ALREADY_ACTIVE,
                key=key,
            )
        capacity = self.capacity(privileged)
        if self.active_count(identity_id) >= capacity:
            raise invalid(
                f"Identity {identity_id} already uses all {capacity} module slots",
                ErrorCode.MODULE_CAPACITY_REACHED,
                capacity=capacity,
            )
        if payment < 0:
            raise invalid("Payment must not be negative", payment=payment)
        if descriptor.premium:
            if payment < descriptor.premium_cost:
                raise invalid(
                    f"Module '{key}' costs {descriptor.premium_cost}, got {payment}",
                    ErrorCode.INSUFFICIENT_PAYMENT,
                    required=descriptor.premium_cost,
                    provided=payment,
                )
        elif payment:
            raise invalid(
                f"Module '{key}' is free; payment of {payment} rejected",
                ErrorCode.UNEXPECTED_PAYMENT,
            )
        return descriptor

    def activate(self, identity_id: int, key: str, height: int) -> None:
        """Record an activation. Callers validate with check_activate first."""
        slots = self.activations.setdefault(identity_id, {})
        existing = slots.get(key)
        if existing is not None:
            existing.active = True
            existing.activated_at = height
        else:
            slots[key] = ModuleActivation(active=True, activated_at=height)

    def check_deactivate(self, identity_id: int, key: str) -> None:
        if not self.is_active(identity_id, key):
            raise invalid(
                f"Module '{key}' is not active for identity {identity_id}",
                ErrorCode.MODULE_NOT_ACTIVE,
                key=key,
            )

    def deactivate(self, identity_id: int, key: str) -> None:
        self.check_deactivate(identity_id, key)
        self.activations[identity_id][key].active = False
