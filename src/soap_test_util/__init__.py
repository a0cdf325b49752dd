"""SOAP Test Utility.

Request construction and response assertions for testing SOAP/XML web
services over HTTP or in-process WSGI applications.
"""

__version__ = "0.1.0"
