import os
import sys
import asyncio
import json
from dotenv import load_dotenv
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from langchain_mcp_adapters.tools import load_mcp_tools
from langgraph.prebuilt import create_react_agent
from langchain_ollama import ChatOllama

load_dotenv()

# Initialize the ChatOllama model with deterministic settings.
model = ChatOllama(model=os.getenv("OLLAMA_MODEL", "qwq:latest"), temperature=0, top_p=1)

SYSTEM_PROMPT = (
    "You are an expert assistant for the NCI Genomic Data Commons (GDC). "
    "Answer questions by calling the gdc_graphql_query tool. Use introspection queries to "
    "check field names before building complex queries, and remember that filters must be "
    "string-encoded JSON placed on hits, not on the entity."
)

TEST_QUERIES = [
    {
        "description": "Project count.",
        "message": "How many projects are available in the GDC?"
    },
    {
        "description": "Brain cases.",
        "message": "How many cases have a primary site of Brain?"
    },
]


class ConversationContext:
    """
    A class to maintain conversation context.

    Attributes:
        history (list): List of conversation messages.
    """
    def __init__(self, system_prompt: str):
        self.history = [{"role": "system", "content": system_prompt}]

    def add_message(self, role: str, content: str):
        """
        Adds a message to the conversation history.

        Parameters:
            role (str): Role of the message sender ("system", "user", or "assistant").
            content (str): Content of the message.
        """
        self.history.append({"role": role, "content": content})

    def get_history(self) -> list:
        return self.history


def server_parameters() -> StdioServerParameters:
    """Stdio launch parameters for the GDC tool server."""
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "mcp_tools.gdc_graphql_tool"],
        cwd=os.path.dirname(os.path.abspath(__file__)),
    )


async def process_query(query: str, agent, context: ConversationContext) -> list:
    """
    Processes a user query by appending it to the conversation context,
    sending it to the agent, and updating the context with the messages the
    agent produced (tool results and answers, not the echoed history).

    Parameters:
        query (str): The user query.
        agent: The reactive agent used to process queries.
        context (ConversationContext): The conversation context.

    Returns:
        list: A list of response texts from the agent.
    """
    context.add_message("user", query)
    sent = len(context.get_history())
    response = await agent.ainvoke({"messages": list(context.get_history())})
    responses = []
    # The agent state starts with the messages it was given.
    for message in response.get("messages", [])[sent:]:
        resp_text = message.text()
        message.pretty_print()  # Debug output
        context.add_message("assistant", resp_text)
        responses.append(resp_text)
    return responses


async def main():
    async with stdio_client(server_parameters()) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            tools = await load_mcp_tools(session)
            agent = create_react_agent(model, tools)

            context = ConversationContext(SYSTEM_PROMPT)
            summary = []

            for query in TEST_QUERIES:
                print("=" * 60)
                print(f"Query: {query['description']}")
                responses = await process_query(query["message"], agent, context)
                summary.append({"question": query["message"], "responses": responses})

    with open("summary.json", "w") as f:
        json.dump(summary, f, indent=2)
    print("Summary written to summary.json")

if __name__ == "__main__":
    asyncio.run(main())
