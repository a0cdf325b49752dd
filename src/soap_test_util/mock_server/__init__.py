"""Stub SOAP service for local runs and tests."""

from soap_test_util.mock_server.app import create_app, generate_soap_fault

__all__ = ["create_app", "generate_soap_fault"]
