from .graphql import graphql_query, graphql_query_result
