"""Prompt templates for the SQLite Manager demo workflow."""
import logging

from mcp.types import GetPromptResult, PromptMessage, TextContent

from sqlite_manager.dispatcher import Dispatcher
from sqlite_manager.registry import MCP_DEMO_PROMPT, McpDemoPromptInput

logger = logging.getLogger(__name__)


def create_mcp_demo_prompt(topic: str) -> str:
    """Instructional walkthrough of the server's tools, seeded with a business topic."""
    return f"""You are a business analyst demoing the SQLite MCP Server. The topic of this demo is: {topic}

Walk the user through a realistic analysis of a business in this area. Follow these steps:

1. **Set the scene**: Describe a plausible business problem related to "{topic}" and the data that would help solve it
2. **Design the schema**: Call list-tables to see what already exists, then call create-table
   (one CREATE TABLE statement per call) for each table the analysis needs
3. **Seed data**: Use write-query with INSERT statements to populate the tables with realistic sample rows
4. **Inspect**: Call describe-table on each new table to confirm its columns
5. **Analyze**: Use read-query with SELECT statements to answer the business questions.
   Explain what each query shows before moving on
6. **Record insights**: Every time a query reveals something notable, call append-insight with a
   one-sentence finding. The memo://insights resource collects them into a business memo
7. **Wrap up**: Summarize the findings and point the user to the memo://insights resource

Rules:
- read-query only accepts SELECT statements
- write-query only accepts INSERT, UPDATE or DELETE statements
- create-table only accepts CREATE TABLE statements
- Pause after the schema design and after the first analysis so the user can steer the demo"""


def register_prompts(dispatcher: Dispatcher):

    @dispatcher.prompt(MCP_DEMO_PROMPT)
    async def mcp_demo(params: McpDemoPromptInput) -> GetPromptResult:
        logger.info(f"Generating prompt for topic: {params.topic}")
        return GetPromptResult(
            description=f"Demo template for {params.topic}",
            messages=[
                PromptMessage(
                    role="user",
                    content=TextContent(type="text", text=create_mcp_demo_prompt(params.topic)),
                )
            ],
        )
