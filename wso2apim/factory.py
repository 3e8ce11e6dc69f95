from typing import Dict, Type

from .apim260 import WSO2APIM260
from .base import BaseAPIManager, ConnectionConfig


class APIManagerFactory:
    _managers: Dict[str, Type[BaseAPIManager]] = {
        "2.6.0": WSO2APIM260,
    }

    @staticmethod
    def create_manager(product_version: str, config: ConnectionConfig) -> BaseAPIManager:
        manager_class = APIManagerFactory._managers.get(product_version.strip())
        if not manager_class:
            raise ValueError(f"Unsupported WSO2 API Manager version: {product_version}")
        return manager_class(config)

    @staticmethod
    def supported_versions():
        return sorted(APIManagerFactory._managers.keys())
