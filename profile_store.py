"""
Device-local profile storage.

The profile is a single JSON object overwritten wholesale on every save.
Older installs wrote one comma-joined line
(first,last,callback,name1,mobile1,...); such files are still read and are
converted to JSON on the next save.
"""
import json
import logging
import os
import tempfile

from models import Contact, Profile

logger = logging.getLogger(__name__)


def parse_legacy_record(text):
    """Parses the old comma-joined record. Missing trailing fields become ''."""
    parts = text.strip().split(",")

    def get(i):
        return parts[i] if i < len(parts) else ""

    contacts = [
        Contact(name=get(i), mobile=get(i + 1))
        for i in range(3, len(parts), 2)
    ]
    return Profile(first_name=get(0), last_name=get(1), callback_number=get(2), contacts=contacts)


class ProfileStore:
    def __init__(self, path):
        self.path = path

    def _read_text(self):
        if not os.path.exists(self.path):
            return ""
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def is_registered(self):
        """True once a non-blank profile has been saved."""
        return self._read_text().strip() != ""

    def load(self):
        """Returns the stored Profile, or None if nothing has been saved."""
        text = self._read_text()
        if not text.strip():
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.info("Reading legacy comma-separated profile from %s", self.path)
            return parse_legacy_record(text)
        if not isinstance(data, dict):
            logger.warning("Profile file %s does not hold an object; ignoring it", self.path)
            return None
        return Profile.from_dict(data)

    def save(self, profile):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".profile-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(profile.to_dict(), f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def register(self, first_name, last_name, callback_number, contacts):
        """
        Validates and saves a full registration.
        contacts is a list of Contact or (name, mobile) pairs.
        Raises ProfileError with a user-facing message on invalid input.
        """
        profile = Profile(
            first_name=first_name,
            last_name=last_name,
            callback_number=callback_number,
            contacts=[c if isinstance(c, Contact) else Contact(*c) for c in contacts],
        )
        profile.validate()
        self.save(profile)
        logger.info("Saved profile for %s %s with %d contact(s)", first_name, last_name, len(profile.contacts))
        return profile
