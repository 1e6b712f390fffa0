# -*- coding: utf-8 -*-
"""
================================================================================
USPS Priority Label Creation
================================================================================
Purpose:
----------------
This script creates a USPS Priority Mail label (Web Tools
`DeliveryConfirmationV4`) for a single package and reports the tracking
number that USPS assigns to it.

Key Steps:
1.  **Build the Request**: Sender, recipient, weight and ship date are set on a
    `LabelRequestBuilder`, which fills in the remaining carrier fields and
    puts every tag in the order USPS requires.
2.  **Send the Request**: The ordered fields are sent by `usps_api_client`,
    which decodes the XML reply and recognises carrier error replies.
3.  **Read the Result**: The tracking number, the base64 label and the
    receipt are read from the reply.

Labels are not written to disk; callers receive the base64 label in the
returned dictionary.
----------------
"""

# =====================================================================================
# --- Imports ---
# =====================================================================================
import os
import sys
import logging
import argparse
from datetime import datetime

# --- Project Path Setup ---
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, PROJECT_ROOT)

from common.utils import get_usps_credentials
from shipping.usps import usps_api_client
from shipping.usps.usps_label_request import LabelRequestBuilder, API_VERSION

# --- Configuration ---
LOG_DIR = os.path.join(PROJECT_ROOT, 'shipping', 'usps', 'label_logs')


def setup_logging():
    """Sets up a daily log file plus console output for label creation."""
    os.makedirs(LOG_DIR, exist_ok=True)
    log_filename = datetime.now().strftime("usps_labels_%Y-%m-%d.log")
    log_path = os.path.join(LOG_DIR, log_filename)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger()


def create_priority_label(user_id, sender, recipient, weight_ounces, ship_date=None,
                          test_mode=False, extra_fields=None):
    """
    Creates a Priority Mail label with USPS.

    Args:
        user_id (str): USPS Web Tools user id.
        sender (dict): Keyword arguments for `LabelRequestBuilder.set_from_address`.
        recipient (dict): Keyword arguments for `LabelRequestBuilder.set_to_address`.
        weight_ounces: Package weight in ounces.
        ship_date (date or str, optional): Label date; omitted when None.
        test_mode (bool): Use the USPS test endpoint.
        extra_fields (list, optional): (position, name, value) tuples for
            carrier fields not covered by the builder's setters.

    Returns:
        dict: {'success': True, 'tracking_number', 'label', 'receipt',
               'raw_response'} or the failure dictionary from the API client.
    """
    builder = LabelRequestBuilder()
    builder.set_from_address(**sender)
    builder.set_to_address(**recipient)
    builder.set_weight_ounces(weight_ounces)
    if ship_date is not None:
        builder.set_ship_date(ship_date)
    for position, name, value in extra_fields or []:
        builder.set_field(position, name, value)

    post_fields = builder.build()
    result = usps_api_client.post_request(user_id, API_VERSION, post_fields, test_mode=test_mode)
    if not result['success']:
        return result

    response = result['response']
    tracking_number = builder.extract_tracking_number(response)
    if not tracking_number:
        logging.error("USPS response did not contain a tracking number.")
        return {
            'success': False,
            'error': 'No tracking number in USPS response.',
            'error_code': None,
            'raw_response': result['raw_response'],
        }

    logging.info(f"SUCCESS: Label created with tracking number {tracking_number}.")
    return {
        'success': True,
        'tracking_number': tracking_number,
        'label': builder.extract_label_image(response),
        'receipt': builder.extract_receipt(response),
        'raw_response': result['raw_response'],
    }


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create a USPS Priority Mail label.")

    for prefix, label in (('from', 'sender'), ('to', 'recipient')):
        parser.add_argument(f"--{prefix}-first-name", required=True, help=f"First name of the {label}.")
        parser.add_argument(f"--{prefix}-last-name", required=True, help=f"Last name of the {label}.")
        parser.add_argument(f"--{prefix}-company", default='', help=f"Company of the {label}.")
        parser.add_argument(f"--{prefix}-address", required=True, help=f"Street address of the {label}.")
        parser.add_argument(f"--{prefix}-address2", default=None, help="Suite, unit or apartment.")
        parser.add_argument(f"--{prefix}-city", required=True)
        parser.add_argument(f"--{prefix}-state", required=True)
        parser.add_argument(f"--{prefix}-zip", required=True, help="5 digit ZIP code.")
        parser.add_argument(f"--{prefix}-zip4", default=None)
        parser.add_argument(f"--{prefix}-phone", default=None)
        parser.add_argument(f"--{prefix}-email", default=None)

    parser.add_argument("--weight", type=int, required=True, help="Package weight in ounces.")
    parser.add_argument("--ship-date", default=None, help="Label date as MM/DD/YYYY.")
    parser.add_argument("--test-mode", action='store_true', help="Use the USPS test endpoint.")
    return parser.parse_args(argv)


def address_from_args(args, prefix):
    return {
        'first_name': getattr(args, f"{prefix}_first_name"),
        'last_name': getattr(args, f"{prefix}_last_name"),
        'company': getattr(args, f"{prefix}_company"),
        'address': getattr(args, f"{prefix}_address"),
        'city': getattr(args, f"{prefix}_city"),
        'state': getattr(args, f"{prefix}_state"),
        'zip5': getattr(args, f"{prefix}_zip"),
        'address2': getattr(args, f"{prefix}_address2"),
        'zip4': getattr(args, f"{prefix}_zip4"),
        'phone': getattr(args, f"{prefix}_phone"),
        'email': getattr(args, f"{prefix}_email"),
    }


def main(argv=None):
    args = parse_args(argv)
    logger = setup_logging()
    logger.info("--- Starting USPS Label Creation ---")

    user_id, test_mode = get_usps_credentials()
    if not user_id:
        logger.critical("CRITICAL: Cannot proceed without USPS API credentials.")
        sys.exit(1)

    result = create_priority_label(
        user_id,
        address_from_args(args, 'from'),
        address_from_args(args, 'to'),
        args.weight,
        ship_date=args.ship_date,
        test_mode=test_mode or args.test_mode,
    )

    if not result['success']:
        logger.error(f"Label creation failed: {result['error']}")
        sys.exit(1)

    logger.info(f"Tracking number: {result['tracking_number']}")
    logger.info("--- USPS Label Creation Finished ---")
    return result


if __name__ == '__main__':
    main()
