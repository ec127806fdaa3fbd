import asyncio
from mcp import ClientSession
from mcp.client.stdio import stdio_client
from langchain_mcp_adapters.tools import load_mcp_tools
from langgraph.prebuilt import create_react_agent
from rich.console import Console
from rich.panel import Panel

from client import SYSTEM_PROMPT, model, server_parameters

console = Console()


def message_text(message) -> str:
    """Returns the content of an agent message, whatever shape it arrives in."""
    if isinstance(message, str):
        return message
    try:
        return message.content
    except AttributeError:
        return str(message)


async def interactive_chat():
    async with stdio_client(server_parameters()) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            tools = await load_mcp_tools(session)
            agent = create_react_agent(model, tools)
            conversation_history = [("system", SYSTEM_PROMPT)]

            console.print("[bold green]GDC Chat Session. Type 'exit' to quit.[/bold green]")

            while True:
                user_message = input("You: ").strip()
                if user_message.lower() in ("exit", "quit"):
                    console.print("[bold red]Exiting chat...[/bold red]")
                    break
                if not user_message:
                    continue

                conversation_history.append(("user", user_message))

                # Invoke the agent with the full conversation history.
                response = await agent.ainvoke({"messages": conversation_history})
                ai_messages = response.get("messages", [])

                if ai_messages:
                    latest_msg_str = message_text(ai_messages[-1])
                    console.print(Panel(latest_msg_str, title="Assistant", border_style="bright_blue"))
                    conversation_history.append(("assistant", latest_msg_str))
                else:
                    console.print("[bold yellow]No response from agent.[/bold yellow]")

if __name__ == "__main__":
    asyncio.run(interactive_chat())
