import os
import sys
import unittest
import requests
import xml.etree.ElementTree as ET
from unittest.mock import patch, MagicMock

# Add project root to Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from shipping.usps import usps_api_client

# --- Test Data ---
POST_FIELDS = [('Option', ''), ('Revision', '2'), ('FromName', 'Jane Sender'), ('WeightInOunces', '16')]

SUCCESS_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<DeliveryConfirmationV4.0Response>'
    '<DeliveryConfirmationNumber>420972019405510200830000000001</DeliveryConfirmationNumber>'
    '<DeliveryConfirmationLabel>SlZCRVJpMHhMalFL</DeliveryConfirmationLabel>'
    '<ToName>ATT: Collection</ToName>'
    '<Postnet></Postnet>'
    '</DeliveryConfirmationV4.0Response>'
)

ERROR_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<Error><Number>80040B1A</Number><Description>API Authorization failure.</Description>'
    '<Source>USPSCOM::DoAuth</Source></Error>'
)


class TestRequestXml(unittest.TestCase):

    def test_root_tag_and_user_id(self):
        xml = usps_api_client.build_request_xml('USER123', 'DeliveryConfirmationV4', POST_FIELDS)
        root = ET.fromstring(xml)

        self.assertEqual(root.tag, 'DeliveryConfirmationV4.0Request')
        self.assertEqual(root.attrib['USERID'], 'USER123')

    def test_children_keep_given_order(self):
        xml = usps_api_client.build_request_xml('USER123', 'DeliveryConfirmationV4', POST_FIELDS)
        root = ET.fromstring(xml)

        self.assertEqual([child.tag for child in root], ['Option', 'Revision', 'FromName', 'WeightInOunces'])
        self.assertEqual(root.find('Revision').text, '2')

    def test_blank_values_become_empty_elements(self):
        xml = usps_api_client.build_request_xml('USER123', 'DeliveryConfirmationV4', [('Option', ''), ('ToZip4', None)])
        root = ET.fromstring(xml)

        self.assertIsNotNone(root.find('Option'))
        self.assertIsNotNone(root.find('ToZip4'))
        self.assertFalse(root.find('Option').text)

    def test_unknown_api_version_falls_back_to_request_suffix(self):
        self.assertEqual(usps_api_client.get_request_tag('TrackV2'), 'TrackV2Request')
        self.assertEqual(usps_api_client.get_response_api_name('TrackV2'), 'TrackV2Response')

    def test_response_api_name(self):
        self.assertEqual(
            usps_api_client.get_response_api_name('DeliveryConfirmationV4'),
            'DeliveryConfirmationV4.0Response'
        )

    def test_api_url_selection(self):
        self.assertEqual(usps_api_client.get_api_url(), usps_api_client.LIVE_API_URL)
        self.assertEqual(usps_api_client.get_api_url(test_mode=True), usps_api_client.TEST_API_URL)


class TestResponseDecoding(unittest.TestCase):

    def test_xml_to_dict(self):
        decoded = usps_api_client.xml_to_dict(SUCCESS_XML)
        body = decoded['DeliveryConfirmationV4.0Response']

        self.assertEqual(body['DeliveryConfirmationNumber'], '420972019405510200830000000001')
        self.assertEqual(body['Postnet'], '')

    def test_repeated_tags_become_a_list(self):
        decoded = usps_api_client.xml_to_dict('<R><Item>a</Item><Item>b</Item><Other><X>1</X></Other></R>')
        self.assertEqual(decoded, {'R': {'Item': ['a', 'b'], 'Other': {'X': '1'}}})

    def test_error_details(self):
        decoded = usps_api_client.xml_to_dict(ERROR_XML)

        self.assertTrue(usps_api_client.is_error_response(decoded))
        self.assertEqual(usps_api_client.get_error_details(decoded), {
            'code': '80040B1A',
            'source': 'USPSCOM::DoAuth',
            'description': 'API Authorization failure.',
        })

    def test_nested_error(self):
        decoded = {'DeliveryConfirmationV4.0Response': {'Error': {'Number': '1', 'Description': 'Bad zip'}}}

        self.assertFalse(usps_api_client.is_error_response(decoded))
        self.assertTrue(usps_api_client.is_error_response(decoded, 'DeliveryConfirmationV4'))

    def test_success_is_not_an_error(self):
        decoded = usps_api_client.xml_to_dict(SUCCESS_XML)
        self.assertFalse(usps_api_client.is_error_response(decoded, 'DeliveryConfirmationV4'))


class TestPostRequest(unittest.TestCase):

    @patch('requests.post')
    def test_post_request_success(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200, text=SUCCESS_XML)

        result = usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS)

        self.assertTrue(result['success'])
        self.assertEqual(
            result['response']['DeliveryConfirmationV4.0Response']['DeliveryConfirmationLabel'],
            'SlZCRVJpMHhMalFL'
        )
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], usps_api_client.LIVE_API_URL)
        self.assertEqual(kwargs['data']['API'], 'DeliveryConfirmationV4')
        self.assertIn('<Option />', kwargs['data']['XML'])
        self.assertEqual(kwargs['timeout'], usps_api_client.REQUEST_TIMEOUT)

    @patch('requests.post')
    def test_post_request_test_mode_url(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200, text=SUCCESS_XML)

        usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS, test_mode=True)

        self.assertEqual(mock_post.call_args[0][0], usps_api_client.TEST_API_URL)

    @patch('requests.post')
    def test_post_request_carrier_error(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200, text=ERROR_XML)

        result = usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS)

        self.assertFalse(result['success'])
        self.assertEqual(result['error'], 'API Authorization failure.')
        self.assertEqual(result['error_code'], '80040B1A')

    @patch('requests.post')
    def test_post_request_http_error(self, mock_post):
        mock_post.return_value = MagicMock(status_code=503, text='Service Unavailable')

        result = usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS)

        self.assertFalse(result['success'])
        self.assertEqual(result['error_code'], '503')

    @patch('requests.post')
    def test_post_request_unparsable_response(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200, text='<html><body>oops')

        result = usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS)

        self.assertFalse(result['success'])
        self.assertTrue(result['error'].startswith('Unparsable response'))

    @patch('requests.post')
    def test_post_request_network_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("connection refused")

        result = usps_api_client.post_request('USER123', 'DeliveryConfirmationV4', POST_FIELDS)

        self.assertFalse(result['success'])
        self.assertIsNone(result['raw_response'])
        self.assertIn('connection refused', result['error'])


if __name__ == '__main__':
    unittest.main()
