import logging
import requests
import xml.etree.ElementTree as ET

# --- Configuration ---
LIVE_API_URL = 'https://secure.shippingapis.com/ShippingAPI.dll'
TEST_API_URL = 'https://secure.shippingapis.com/ShippingAPITest.dll'
REQUEST_TIMEOUT = 30

# Root tag of the XML document for each Web Tools API.
API_REQUEST_TAGS = {
    'DeliveryConfirmationV4': 'DeliveryConfirmationV4.0Request',
}

ERROR_KEY = 'Error'


def get_api_url(test_mode=False):
    return TEST_API_URL if test_mode else LIVE_API_URL


def get_request_tag(api_version):
    return API_REQUEST_TAGS.get(api_version, f"{api_version}Request")


def get_response_api_name(api_version):
    """The root tag USPS answers with, e.g. DeliveryConfirmationV4.0Response."""
    return get_request_tag(api_version).replace('Request', 'Response')


def build_request_xml(user_id, api_version, post_fields):
    """
    Serializes the ordered (tag, value) pairs into the request document.

    Tags are written in the order given; USPS rejects the request otherwise.
    Blank values produce empty elements.
    """
    root = ET.Element(get_request_tag(api_version), USERID=user_id)
    for tag, value in post_fields:
        element = ET.SubElement(root, tag)
        element.text = value if value is not None else ''
    return ET.tostring(root, encoding='unicode')


def element_to_dict(element):
    children = list(element)
    if not children:
        return (element.text or '').strip()

    result = {}
    for child in children:
        value = element_to_dict(child)
        if child.tag in result:
            # Repeated tags become a list
            if not isinstance(result[child.tag], list):
                result[child.tag] = [result[child.tag]]
            result[child.tag].append(value)
        else:
            result[child.tag] = value
    return result


def xml_to_dict(xml_text):
    """
    Decodes a USPS reply into a nested dict keyed by the root tag.

    Raises:
        ET.ParseError: if the text is not well-formed XML.
    """
    root = ET.fromstring(xml_text)
    return {root.tag: element_to_dict(root)}


def is_error_response(response, api_version=None):
    return get_error_details(response, api_version) is not None


def get_error_details(response, api_version=None):
    """
    Returns the carrier error as {'code', 'source', 'description'}, or None.

    USPS answers with a root <Error> element, but some APIs nest it
    under the response tag instead.
    """
    if not isinstance(response, dict):
        return None
    error = response.get(ERROR_KEY)
    if error is None and api_version:
        body = response.get(get_response_api_name(api_version))
        if isinstance(body, dict):
            error = body.get(ERROR_KEY)
    if not isinstance(error, dict):
        return None
    return {
        'code': error.get('Number'),
        'source': error.get('Source'),
        'description': error.get('Description') or 'No description provided.',
    }


def post_request(user_id, api_version, post_fields, test_mode=False, timeout=REQUEST_TIMEOUT):
    """
    Sends a Web Tools request and decodes the reply.

    Args:
        user_id (str): USPS Web Tools user id.
        api_version (str): Web Tools API name, e.g. "DeliveryConfirmationV4".
        post_fields (list): Ordered (tag, value) pairs from the request builder.
        test_mode (bool): Send to the test endpoint instead of production.

    Returns:
        dict: {'success': True, 'response': dict, 'raw_response': str} or
              {'success': False, 'error': str, 'error_code': str or None,
               'raw_response': str or None}.
    """
    url = get_api_url(test_mode)
    payload = {
        'API': api_version,
        'XML': build_request_xml(user_id, api_version, post_fields),
    }

    logging.info(f"Sending {api_version} request to {url}")
    try:
        response = requests.post(url, data=payload, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logging.error(f"Network error while calling USPS {api_version}: {e}")
        return {'success': False, 'error': f"Network error: {e}", 'error_code': None, 'raw_response': None}

    if not 200 <= response.status_code < 300:
        logging.error(f"Received HTTP {response.status_code} from USPS {api_version}.")
        return {
            'success': False,
            'error': f"HTTP {response.status_code}",
            'error_code': str(response.status_code),
            'raw_response': response.text,
        }

    try:
        decoded = xml_to_dict(response.text)
    except ET.ParseError as e:
        logging.error(f"Could not parse USPS response. Response: {response.text}. Error: {e}")
        return {'success': False, 'error': f"Unparsable response: {e}", 'error_code': None, 'raw_response': response.text}

    error = get_error_details(decoded, api_version)
    if error:
        logging.error(f"USPS API Error Code: {error['code']} - {error['description']}")
        return {
            'success': False,
            'error': error['description'],
            'error_code': error['code'],
            'raw_response': response.text,
        }

    return {'success': True, 'response': decoded, 'raw_response': response.text}
