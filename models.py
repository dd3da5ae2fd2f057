from dataclasses import dataclass, field, asdict
from typing import List, Optional


STATUS_SENT = "sent"
STATUS_FAILED = "failed"


class ProfileError(ValueError):
    """Raised when a profile does not satisfy the registration rules."""


# --------------------------
# DEVICE PROFILE
# --------------------------


@dataclass
class Contact:
    name: str
    mobile: str


@dataclass
class Profile:
    first_name: str
    last_name: str
    callback_number: str
    contacts: List[Contact] = field(default_factory=list)

    def contact_numbers(self) -> List[str]:
        """Mobiles in registration order, blank ones skipped."""
        return [c.mobile for c in self.contacts if c.mobile.strip()]

    def add_contact(self, name: str = "", mobile: str = "") -> Contact:
        contact = Contact(name=name, mobile=mobile)
        self.contacts.append(contact)
        return contact

    def remove_contact(self, index: int) -> Contact:
        """Removes a contact; the first one is permanent."""
        if index == 0:
            raise ValueError("The first emergency contact cannot be removed")
        if index < 0 or index >= len(self.contacts):
            raise IndexError(f"No contact at position {index}")
        return self.contacts.pop(index)

    def validate(self) -> None:
        if not (self.first_name.strip() and self.last_name.strip() and self.callback_number.strip()):
            raise ProfileError("Personal fields cannot be empty!")
        if not self.contacts:
            raise ProfileError("Please add at least one contact!")
        if any(not c.name.strip() or not c.mobile.strip() for c in self.contacts):
            raise ProfileError("No contact field can be blank!")

    def to_dict(self) -> dict:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "callbackNumber": self.callback_number,
            "contacts": [{"name": c.name, "mobile": c.mobile} for c in self.contacts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        return cls(
            first_name=str(data.get("firstName", "")),
            last_name=str(data.get("lastName", "")),
            callback_number=str(data.get("callbackNumber", "")),
            contacts=[
                Contact(name=str(c.get("name", "")), mobile=str(c.get("mobile", "")))
                for c in data.get("contacts", [])
                if isinstance(c, dict)
            ],
        )


# --------------------------
# WIRE / AUDIT MODELS
# --------------------------


@dataclass
class AlertRequest:
    name: str
    surname: str
    coordinates: str
    call_me_at: str
    emergency_type: str
    contacts: List[str]

    def to_payload(self) -> dict:
        """JSON body as posted to /sos."""
        return {
            "name": self.name,
            "surname": self.surname,
            "coordinates": self.coordinates,
            "callMeAt": self.call_me_at,
            "emergencyType": self.emergency_type,
            "contacts": list(self.contacts),
        }


@dataclass
class DispatchResult:
    number: str
    status: str
    sid: Optional[str] = None
    error: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == STATUS_SENT

    def to_dict(self) -> dict:
        data = {"number": self.number}
        if self.sid is not None:
            data["sid"] = self.sid
        if self.error is not None:
            data["error"] = self.error
        data["status"] = self.status
        return data


@dataclass
class LogEntry:
    timestamp: str
    name: str
    surname: str
    coordinates: str
    contacts: List[str]
    results: List[DispatchResult]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["results"] = [r.to_dict() for r in self.results]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        return cls(
            timestamp=data["timestamp"],
            name=data["name"],
            surname=data["surname"],
            coordinates=data["coordinates"],
            contacts=list(data["contacts"]),
            results=[
                DispatchResult(
                    number=r["number"],
                    status=r["status"],
                    sid=r.get("sid"),
                    error=r.get("error"),
                )
                for r in data.get("results", [])
            ],
        )
