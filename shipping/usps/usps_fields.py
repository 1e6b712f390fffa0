"""
Ordered request fields for the USPS Web Tools label API.

USPS rejects a request whose XML tags are not in the order listed in its
documentation, so every field carries a decimal position. Fractional
positions (e.g. 1.1) slot a field between two whole positions without
renumbering the rest.
"""
import re
from collections import namedtuple
from decimal import Decimal

Field = namedtuple('Field', ['position', 'name', 'value'])
DefaultField = namedtuple('DefaultField', ['position', 'name', 'value', 'enabled'])

ORDINAL_PREFIX = re.compile(r'^\d+:')


def to_position(position):
    """Normalizes an int, float or string ordinal to a Decimal."""
    if isinstance(position, Decimal):
        return position
    # str() first so that 11.1 stays 11.1 instead of its binary float value
    return Decimal(str(position))


def transmission_key(name):
    """
    Returns the bare tag name sent to USPS.

    Dots are removed and a leading "<digits>:" ordinal is stripped, so both
    "1.1:Revision" and "Revision" become "Revision".
    """
    return ORDINAL_PREFIX.sub('', name.replace('.', ''))


# Carrier-mandated fields with the values used when the caller leaves them
# unset. Disabled entries are known fields that are currently withheld.
DEFAULT_FIELDS = (
    DefaultField(Decimal('1'), 'Option', '', True),
    DefaultField(Decimal('1.1'), 'Revision', '2', True),
    DefaultField(Decimal('2'), 'ImageParameters', '', True),
    DefaultField(Decimal('2.1'), 'ImageParameter', '', False),
    DefaultField(Decimal('19'), 'ToPOBoxFlag', '', False),
    DefaultField(Decimal('20'), 'ToContactPreference', 'EMAIL', False),
    DefaultField(Decimal('21'), 'ToContactMessaging', '', False),
    # PRIORITY, FIRST CLASS, STANDARD POST, MEDIA MAIL, LIBRARY MAIL
    DefaultField(Decimal('23'), 'ServiceType', 'PRIORITY', True),
    DefaultField(Decimal('24'), 'InsuredAmount', '50.00', False),
    DefaultField(Decimal('25'), 'WaiverOfSignature', 'False', True),
    DefaultField(Decimal('30'), 'NoHoliday', '', False),
    DefaultField(Decimal('31'), 'NoWeekend', '', False),
    DefaultField(Decimal('26'), 'SeparateReceiptPage', 'False', True),
    DefaultField(Decimal('27'), 'POZipCode', '', True),
    DefaultField(Decimal('34'), 'FacilityType', 'DDU', False),
    DefaultField(Decimal('28'), 'ImageType', 'PDF', True),
    DefaultField(Decimal('30'), 'CustomerRefNo', '', True),
    DefaultField(Decimal('31'), 'AddressServiceRequested', 'False', True),
    DefaultField(Decimal('32'), 'SenderName', '', True),
    DefaultField(Decimal('34'), 'RecipientName', '', True),
    DefaultField(Decimal('36'), 'AllowNonCleansedDestAddr', 'Y', True),
    DefaultField(Decimal('37'), 'HoldForManifest', 'N', True),
    DefaultField(Decimal('38'), 'Container', 'SM Flat Rate Box', True),
    DefaultField(Decimal('44'), 'InsuredAmount', '', False),
    DefaultField(Decimal('39'), 'Size', 'Regular', True),
    DefaultField(Decimal('40'), 'Width', '', True),
    DefaultField(Decimal('41'), 'Length', '', True),
    DefaultField(Decimal('42'), 'Height', '', True),
    DefaultField(Decimal('43'), 'Girth', '', True),
    DefaultField(Decimal('44'), 'Machinable', 'True', True),
    DefaultField(Decimal('45'), 'CommercialPrice', 'false', False),
    DefaultField(Decimal('46'), 'ExtraServices', '', False),
    DefaultField(Decimal('47'), 'ExtraService', '', False),
    DefaultField(Decimal('48'), 'CarrierRelease', 'A', False),
    DefaultField(Decimal('49'), 'ReturnCommitments', '', False),
    DefaultField(Decimal('50'), 'GroundOnly', '', False),
    DefaultField(Decimal('51'), 'Content', '', False),
    DefaultField(Decimal('52'), 'ContentType', '', False),
    DefaultField(Decimal('53'), 'ContentDescription', '', False),
)


def enabled_defaults(default_table=DEFAULT_FIELDS):
    return [entry for entry in default_table if entry.enabled]


class RequestFieldSet:
    """
    Fields of a single request, keyed by position.

    Writing to an occupied position replaces the field there; insertion order
    never matters because `finalize()` sorts by position.
    """

    def __init__(self):
        self._fields = {}

    def __len__(self):
        return len(self._fields)

    def __contains__(self, position):
        return to_position(position) in self._fields

    def set_field(self, position, name, value):
        position = to_position(position)
        value = '' if value is None else str(value)
        self._fields[position] = Field(position, name, value)
        return self

    def get_field(self, position):
        return self._fields.get(to_position(position))

    def positions(self):
        return sorted(self._fields)

    def merge_defaults(self, default_table=DEFAULT_FIELDS):
        """
        Fills every empty position from the enabled entries of `default_table`.

        Positions that already hold a field keep it, so values set by the
        caller always win and merging more than once changes nothing.
        """
        for entry in enabled_defaults(default_table):
            position = to_position(entry.position)
            if position not in self._fields:
                self._fields[position] = Field(position, entry.name, entry.value)
        return self

    def finalize(self):
        """
        Returns the fields as an ordered list of (transmission_key, value).

        Positions sort numerically, so 2 comes before 10 and 1.1 falls
        between 1 and 2. The set itself is left unchanged.
        """
        return [
            (transmission_key(self._fields[position].name), self._fields[position].value)
            for position in sorted(self._fields)
        ]
