"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""


class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""

    ...


class MissingExpectedParameterException(BaseAWSSDKException, ValueError):
    """Some APIs require specific signing properties to be present."""

    ...


class InvalidHeaderValueException(BaseAWSSDKException, ValueError):
    """A header value could not be rendered into the canonical request."""

    def __init__(self, name: str, value: object):
        self.name = name
        self.value = value
        super().__init__(f"Header {name} contains invalid value: {value!r}")


class InvalidSigningDateException(BaseAWSSDKException, ValueError):
    """The signing date is not a datetime or a YYYYMMDDTHHMMSSZ string."""

    ...
