"""research-chat

Simple CLI for running the research tools and one-shot chats.
"""

import argparse
import asyncio
import json

import uvicorn

from research_chat.agents import tools as tool_registry
from research_chat.agents.chat_agent import ChatAgent
from research_chat.services import prompt_store


def print_json(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


async def run_tool(name: str, arguments: dict) -> None:
    """Invoke one tool exactly as the chat model would."""
    print(f"Tool: {name}")
    print("-" * 50)
    print_json(await tool_registry.dispatch(name, arguments))


async def run_chat(message: str, prompt: str | None, max_searches: int | None) -> None:
    """Send one user message and stream the reply."""
    system = prompt_store.system_prompt(prompt, max_searches=max_searches)
    agent = ChatAgent(system_prompt=system)

    async for event in agent.run([{"role": "user", "content": message}]):
        event_type = event.event.value
        data = event.data

        if event_type == "text_delta":
            print(data.get("text", ""), end="", flush=True)

        elif event_type == "tool_call":
            print(f"\n[>] {data.get('name')}({json.dumps(data.get('args', {}))[:120]})")

        elif event_type == "tool_result":
            result = data.get("result", {})
            if result.get("status") == "error":
                print(f"[!] {data.get('name')} failed: {result.get('details')}")
            else:
                print(f"[+] {data.get('name')} returned {len(json.dumps(result))} bytes")

        elif event_type == "finish":
            usage = data.get("usage", {})
            print(f"\n\n[*] Done in {data.get('steps')} step(s)")
            print(f"   Tokens: {usage.get('input_tokens', 0)} in / {usage.get('output_tokens', 0)} out")

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('message', 'Unknown error')}")


def main():
    parser = argparse.ArgumentParser(description="research-chat tools")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Single web search (performSearch)")
    p.add_argument("query")
    p.add_argument("--num-results", "-n", type=int, default=5)
    p.add_argument("--category", "-c", default="general")

    p = sub.add_parser("research", help="Single-call deep research (simpleDeepResearch)")
    p.add_argument("query")
    p.add_argument("--num-results", "-n", type=int, default=3)

    p = sub.add_parser("advanced", help="Multi-step research (advancedDeepResearch)")
    p.add_argument("query")
    p.add_argument("--sub-question", "-s", action="append", default=[], help="Repeat for each sub-question")
    p.add_argument("--rationale")
    p.add_argument("--max-searches", "-m", type=int)
    p.add_argument("--details", action="store_true", help="Include full source content")

    p = sub.add_parser("analyze", help="Fetch page text (analyzeURL)")
    p.add_argument("url")

    p = sub.add_parser("weather", help="Forecast for coordinates (getWeather)")
    p.add_argument("latitude", type=float)
    p.add_argument("longitude", type=float)

    p = sub.add_parser("flights", help="Generated flight search results (searchFlights)")
    p.add_argument("origin")
    p.add_argument("destination")

    p = sub.add_parser("flight-status", help="Generated flight status (displayFlightStatus)")
    p.add_argument("flight_number")
    p.add_argument("date")

    p = sub.add_parser("chat", help="One chat turn with tool use")
    p.add_argument("message")
    p.add_argument("--prompt", "-p", choices=prompt_store.SYSTEM_PROMPTS)
    p.add_argument("--max-searches", "-m", type=int)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    if args.command == "serve":
        uvicorn.run("research_chat.main:app", host=args.host, port=args.port, reload=args.reload)
        return

    if args.command == "chat":
        asyncio.run(run_chat(args.message, args.prompt, args.max_searches))
        return

    if args.command == "search":
        name, arguments = "performSearch", {
            "query": args.query,
            "numResults": args.num_results,
            "category": args.category,
        }
    elif args.command == "research":
        name, arguments = "simpleDeepResearch", {"query": args.query, "numResults": args.num_results}
    elif args.command == "advanced":
        arguments = {"query": args.query, "includeDetails": args.details}
        if args.sub_question:
            arguments["researchPlan"] = {"subQuestions": args.sub_question, "rationale": args.rationale}
        if args.max_searches is not None:
            arguments["maxSearches"] = args.max_searches
        name = "advancedDeepResearch"
    elif args.command == "analyze":
        name, arguments = "analyzeURL", {"url": args.url}
    elif args.command == "flights":
        name, arguments = "searchFlights", {"origin": args.origin, "destination": args.destination}
    elif args.command == "flight-status":
        name, arguments = "displayFlightStatus", {"flightNumber": args.flight_number, "date": args.date}
    else:
        name, arguments = "getWeather", {"latitude": args.latitude, "longitude": args.longitude}

    asyncio.run(run_tool(name, arguments))


if __name__ == "__main__":
    main()
