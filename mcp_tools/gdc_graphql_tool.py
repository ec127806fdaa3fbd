import os
import json
import logging
from typing import Annotated, Any, Dict, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from mcp_tools.gdc_relay import DEFAULT_GDC_GRAPHQL_ENDPOINT, execute_gdc_graphql_query

# Load environment variables
load_dotenv()

GDC_GRAPHQL_ENDPOINT = os.getenv("GDC_GRAPHQL_ENDPOINT", DEFAULT_GDC_GRAPHQL_ENDPOINT).strip()
MCP_HOST = os.getenv("MCP_HOST", "127.0.0.1").strip()
MCP_PORT = int(os.getenv("MCP_PORT", "8000"))

# Configure logging.
logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
if not logger.handlers:
    ch = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(levelname)s:%(name)s: %(message)s")
    ch.setFormatter(formatter)
    logger.addHandler(ch)

SERVER_INSTRUCTIONS = f"""MCP Server for querying the National Cancer Institute (NCI) Genomic Data Commons (GDC) GraphQL API.
This server uses the GDC Search and Retrieval Endpoint: {GDC_GRAPHQL_ENDPOINT}.
It does NOT use the GDC Submission Endpoint.

Before running any specific data queries, it is **strongly recommended** to use GraphQL introspection queries to explore and understand the schema of the GDC API. Introspection allows you to:

- **Discover all available types, fields, and relationships** in the API, so you know exactly what data you can access and how to structure your queries.
- **Avoid common errors** due to typos or incorrect field names, as you can verify the schema directly before querying.
- **Stay resilient to schema changes**: the GDC API may evolve, and introspection lets you adapt to new or deprecated fields.
- **Craft precise queries** by understanding which fields are available and how they are nested.

**Example introspection queries:**
To list all types:
```graphql
{{
  __schema {{
    types {{
      name
      kind
      fields {{
        name
      }}
    }}
  }}
}}
```
To get details about a specific type like "Case":
```graphql
{{
  __type(name: "Case") {{
    name
    kind
    description
    fields {{
      name
    }}
  }}
}}
```
Use introspection to map out the schema, then construct targeted queries for cases, files, projects, annotations, and more.

Refer to the NCI GDC documentation (https://gdc.cancer.gov/developers/gdc-application-programming-interface-api/gdc-api-user-guide/graphql-quick-start) and the GraphiQL tool (available at the API endpoint) for further schema exploration and query examples. If a query fails, use introspection to verify field names and types before retrying."""

TOOL_DESCRIPTION = f"""Executes a GraphQL query against the NCI GDC GraphQL API (Search and Retrieval Endpoint: {GDC_GRAPHQL_ENDPOINT}).

**IMPORTANT: FiltersArgument must be a string-encoded JSON object, not a JS object.**

- **Correct:**
  filters: "{{\\"op\\":\\"=\\",\\"content\\":{{\\"field\\":\\"primary_site\\",\\"value\\":[\\"Brain\\"]}}}}"
- **Incorrect:**
  filters: {{op: "=", content: {{field: "primary_site", value: ["Brain"]}}}}

**Best Practices for GDC GraphQL Queries:**
1. **Filters must be string-encoded JSON** (see above). This applies to all filters, including nested filters.
2. **Apply filters, sorting, and other arguments to the operation (e.g., hits), not the entity.**
   - Incorrect: ssms(filters: ...)
   - Correct: ssms {{ hits(filters: ...) {{ ... }} }}
3. **Enum values (e.g., sort order) are case-sensitive and must be lowercase.**
   - Correct: order: desc
4. **Complex filters use nested JSON with 'and'/'or' operators.**
   - Example: filters: "{{\\"op\\":\\"and\\",\\"content\\":[{{...}},{{...}}]}}"
5. **Use dot notation for nested field paths in filters.**
   - Example: consequence.transcript.gene.symbol
6. **Available filter operators include:** =, !=, >, >=, <, <=, in, and, or
7. **Use GraphQL introspection to discover available types and fields before building queries.**
   - Example: {{ __type(name: "Case") {{ fields {{ name }} }} }}
8. **Working query template:**
```graphql
{{
  explore {{
    ssms {{
      hits(
        first: 10,
        filters: "{{\\"op\\":\\"and\\",\\"content\\":[{{\\"op\\":\\"=\\",\\"content\\":{{\\"field\\":\\"consequence.transcript.annotation.vep_impact\\",\\"value\\":[\\"HIGH\\"]}}}}]}}"
      ) {{
        edges {{
          node {{
            genomic_dna_change
            gene_aa_change
            consequence {{
              hits(first: 1) {{
                edges {{
                  node {{
                    transcript {{
                      consequence_type
                      gene {{ symbol }}
                      annotation {{ vep_impact }}
                    }}
                  }}
                }}
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
```

**If you encounter errors:**
- Double-check that filters are string-encoded JSON.
- Use introspection to verify field names and types.
- Ensure arguments are placed on the correct operation (hits, aggregations, etc.).
- Check enum value case (e.g., desc not DESC).

For more, see the GDC API docs: https://gdc.cancer.gov/developers/gdc-application-programming-interface-api/gdc-api-user-guide/graphql-quick-start
"""

QUERY_DESCRIPTION = """The GraphQL query string to execute against the NCI GDC GraphQL API.

**Filters must be string-encoded JSON.**
- Example: filters: "{\\"op\\":\\"=\\",\\"content\\":{\\"field\\":\\"primary_site\\",\\"value\\":[\\"Brain\\"]}}"
- Use introspection queries like '{ __type(name: "Case") { fields { name } } }' to discover fields before building complex queries."""

VARIABLES_DESCRIPTION = """Optional dictionary of variables for the GraphQL query.
For filter variables, provide the filter as a properly formatted JSON string:
{ "filters": "{\\"op\\":\\"=\\",\\"content\\":{\\"field\\":\\"cases.case_id\\",\\"value\\":[\\"dcd5860c-7e3a-44f3-a732-fe92fe3fe300\\"]}}" }"""

# Create an MCP server instance.
mcp = FastMCP("NciGdcExplorer", instructions=SERVER_INSTRUCTIONS, host=MCP_HOST, port=MCP_PORT)


@mcp.tool(name="gdc_graphql_query", description=TOOL_DESCRIPTION)
async def gdc_graphql_query(
    query: Annotated[str, Field(description=QUERY_DESCRIPTION)],
    variables: Annotated[Optional[Dict[str, Any]], Field(description=VARIABLES_DESCRIPTION)] = None,
) -> str:
    """
    Runs a GraphQL query against the GDC and returns the result as indented JSON text.
    """
    logger.info("Tool gdc_graphql_query called with query: %s...", query[:150])
    if variables:
        logger.info("With variables: %s...", json.dumps(variables, default=str)[:100])

    result = await execute_gdc_graphql_query(query, variables, endpoint=GDC_GRAPHQL_ENDPOINT)

    # Pretty print so the payload stays readable for humans and parsable for LLMs.
    return json.dumps(result, indent=2)


if __name__ == "__main__":
    # Run the MCP server over stdio.
    logger.info("NCI GDC MCP Server initialized.")
    mcp.run(transport="stdio")
