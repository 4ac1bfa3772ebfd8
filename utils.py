import logging

import requests
from pydantic import ValidationError

from exceptions import DecodeError, NetworkError
from schemas import GasPriceSample

logger = logging.getLogger(__name__)


# Retrieve the current gas price estimates from the gas station API
def get_gas_prices(url, timeout=None, session=None):
    http = session if session is not None else requests

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Error fetching gas prices from {url}: {e}")
        raise NetworkError(f"Error fetching gas prices from {url}: {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"Error decoding JSON response from {url}: {e}")
        raise DecodeError(f"Response from {url} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object from {url}, got {type(data).__name__}")

    try:
        return GasPriceSample.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected gas price payload from {url}: {e}")
        raise DecodeError(f"Unexpected gas price payload: {e}") from e
