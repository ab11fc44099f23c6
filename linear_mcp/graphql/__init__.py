from .client import LinearGraphQLClient
from .documents import GraphQLDocument

__all__ = ["GraphQLDocument", "LinearGraphQLClient"]
