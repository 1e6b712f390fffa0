"""
Builder for USPS `DeliveryConfirmationV4` (Priority Mail label) requests.

The builder collects the sender, recipient and package details into a
RequestFieldSet, fills the remaining carrier fields from DEFAULT_FIELDS and
produces the ordered (tag, value) list the API client sends. It also reads
the tracking number, label and receipt back out of the decoded reply.
"""
from datetime import date, datetime

from shipping.usps.usps_fields import RequestFieldSet, DEFAULT_FIELDS

API_VERSION = 'DeliveryConfirmationV4'
RESPONSE_API_NAME = 'DeliveryConfirmationV4.0Response'

TRACKING_NUMBER_KEY = 'DeliveryConfirmationNumber'
LABEL_IMAGE_KEY = 'DeliveryConfirmationLabel'
RECEIPT_KEY = 'EMReceipt'

# USPS always receives this name instead of the recipient's own.
RECIPIENT_NAME_OVERRIDE = 'ATT: Collection'


class RequestAlreadyBuiltError(RuntimeError):
    """Raised when a built request is modified."""


def get_response_value(response, key, api_name=RESPONSE_API_NAME):
    """
    Returns response[api_name][key], or None when either level is missing.

    The response is whatever the API client decoded, so anything that is not
    a mapping at either level also yields None.
    """
    if not isinstance(response, dict):
        return None
    body = response.get(api_name)
    if not isinstance(body, dict):
        return None
    return body.get(key)


class LabelRequestBuilder:
    """
    Collects one label request. Use a new builder for every label.
    """

    def __init__(self, default_table=DEFAULT_FIELDS):
        self.fields = RequestFieldSet()
        self.default_table = default_table
        self.post_fields = None

    @property
    def is_built(self):
        return self.post_fields is not None

    def _check_not_built(self):
        if self.is_built:
            raise RequestAlreadyBuiltError("The request has already been built; create a new LabelRequestBuilder.")

    def set_field(self, position, name, value):
        """
        Sets any carrier field not covered by the typed setters.
        The position decides where the tag lands in the request.
        """
        self._check_not_built()
        self.fields.set_field(position, name, value)
        return self

    def set_from_address(self, first_name, last_name, company, address, city, state, zip5,
                         address2=None, zip4=None, phone=None, email=None):
        """
        Sets the sender.

        `address2` is sent as FromAddress1 and `address` as FromAddress2.
        `phone` is accepted but not sent (FromPhone at position 14 is withheld).
        """
        self.set_field(3, 'FromName', f"{first_name} {last_name}")
        self.set_field(4, 'FromFirm', company)
        self.set_field(5, 'FromAddress1', address2)
        self.set_field(6, 'FromAddress2', address)
        self.set_field(7, 'FromCity', city)
        self.set_field(8, 'FromState', state)
        self.set_field(9, 'FromZip5', zip5)
        self.set_field(10, 'FromZip4', zip4)
        self.set_field(33, 'SenderEMail', email)
        return self

    def set_to_address(self, first_name, last_name, company, address, city, state, zip5,
                       address2=None, zip4=None, phone=None, email=None):
        """
        Sets the recipient.

        ToName is always RECIPIENT_NAME_OVERRIDE; first/last name (11.1, 11.2),
        ToPhone (24) and ToContactEMail (22) are withheld. `email` goes out as
        RecipientEMail. The address lines are swapped as in set_from_address.
        """
        self.set_field(11, 'ToName', RECIPIENT_NAME_OVERRIDE)
        self.set_field(12, 'ToFirm', company)
        self.set_field(13, 'ToAddress1', address2)
        self.set_field(14, 'ToAddress2', address)
        self.set_field(15, 'ToCity', city)
        self.set_field(16, 'ToState', state)
        self.set_field(17, 'ToZip5', zip5)
        self.set_field(18, 'ToZip4', zip4)
        self.set_field(35, 'RecipientEMail', email)
        return self

    def set_ship_date(self, ship_date):
        if isinstance(ship_date, (date, datetime)):
            ship_date = ship_date.strftime('%m/%d/%Y')
        return self.set_field(29, 'LabelDate', ship_date)

    def set_weight_ounces(self, weight):
        return self.set_field(19, 'WeightInOunces', weight)

    def build(self):
        """
        Fills the missing carrier fields and returns the ordered
        (tag, value) list. Building again returns the same list.
        """
        if not self.is_built:
            self.fields.merge_defaults(self.default_table)
            self.post_fields = self.fields.finalize()
        return self.post_fields

    def get_post_fields(self):
        return self.post_fields

    def extract_tracking_number(self, response):
        return get_response_value(response, TRACKING_NUMBER_KEY)

    def extract_label_image(self, response):
        """Base64 encoded label, or None."""
        return get_response_value(response, LABEL_IMAGE_KEY)

    def extract_receipt(self, response):
        """Base64 encoded receipt, or None."""
        return get_response_value(response, RECEIPT_KEY)
