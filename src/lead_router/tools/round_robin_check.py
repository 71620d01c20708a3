"""
Round-robin load check against a running server.

Creates a throwaway set of agents, a lead package for each of them and a
campaign pooling them, fires N prospect submissions concurrently and checks
that the spread between the busiest and the idlest agent is at most one.

    python -m lead_router.tools.round_robin_check --base-url http://localhost:8000 -n 90
"""
import argparse
import asyncio
import sys
import time
from collections import Counter
from typing import Dict, List, Tuple

import httpx

from lead_router.core.config import settings
from lead_router.utils.logging import get_logger

logger = get_logger("lead_router.tools.round_robin_check")


def check_balance(counts: Dict[int, int]) -> Tuple[bool, int]:
    """
    Whether a distribution is round-robin balanced.

    Returns:
        (balanced, spread) where spread is max - min over the agents given
    """
    if not counts:
        return True, 0
    spread = max(counts.values()) - min(counts.values())
    return spread <= 1, spread


class RoundRobinCheck:
    def __init__(self, client: httpx.AsyncClient, api_prefix: str, api_key: str):
        self.client = client
        self.api = api_prefix.rstrip("/")
        self.admin_headers = {"X-API-Key": api_key}
        self.run_id = str(int(time.time() * 1000))

    async def _post(self, path: str, payload: dict, admin: bool = True) -> dict:
        response = await self.client.post(
            f"{self.api}{path}",
            json=payload,
            headers=self.admin_headers if admin else None,
        )
        response.raise_for_status()
        return response.json()

    async def setup(self, agent_count: int, leads: int) -> Tuple[List[dict], int]:
        """Agents, one package each large enough for every lead, and a campaign"""
        agents = []
        for i in range(agent_count):
            agents.append(await self._post("/users", {
                "email": f"agent_rr_{i}_{self.run_id}@test.com",
                "firstName": "Agent",
                "lastName": f"RR{i}",
                "role": "agent",
            }))

        package = await self._post("/lead-packages", {
            "name": f"RR Package {self.run_id}",
            "leadCount": leads,
            "price": "0",
        })
        for agent in agents:
            await self._post("/lead-packages/assign", {"agentId": agent["id"], "packageId": package["id"]})

        campaign = await self._post("/campaigns", {
            "name": f"RR Campaign {self.run_id}",
            "type": "lead_generation",
            "assignedAgentIds": [agent["id"] for agent in agents],
        })
        logger.info(
            f"[cyan]Set up {agent_count} agent(s)[/cyan] in campaign {campaign['id']} "
            f"with {leads} credit(s) each"
        )
        return agents, campaign["id"]

    async def fire(self, campaign_id: int, leads: int) -> None:
        async def submit(i: int) -> None:
            await self._post("/prospects", {
                "firstName": "Lead",
                "lastName": str(i),
                "email": f"lead_rr_{self.run_id}_{i}@test.com",
                "phone": f"999{self.run_id[-5:]}{i:03d}",
                "leadSource": "qr_code",
                "campaignId": campaign_id,
            }, admin=False)

        logger.info(f"[cyan]Firing {leads} lead(s)...[/cyan]")
        await asyncio.gather(*(submit(i) for i in range(leads)))

    async def distribution(self, campaign_id: int, agents: List[dict]) -> Dict[int, int]:
        response = await self.client.get(
            f"{self.api}/prospects",
            params={"campaignId": campaign_id, "limit": 1000},
            headers=self.admin_headers,
        )
        response.raise_for_status()
        counts = Counter(p["assignedAgentId"] for p in response.json()["prospects"])
        return {agent["id"]: counts.get(agent["id"], 0) for agent in agents}


async def run_check(base_url: str, agent_count: int, leads: int, api_key: str, transport=None) -> bool:
    async with httpx.AsyncClient(base_url=base_url, timeout=30, transport=transport) as client:
        check = RoundRobinCheck(client, settings.api_prefix, api_key)
        agents, campaign_id = await check.setup(agent_count, leads)
        await check.fire(campaign_id, leads)
        counts = await check.distribution(campaign_id, agents)

    balanced, spread = check_balance(counts)
    logger.info("[bold]Round-robin distribution:[/bold]")
    for agent in agents:
        logger.info(f"  {agent['email']}: {counts[agent['id']]}")
    status = "[green]yes[/green]" if balanced else "[red]no[/red]"
    logger.info(f"Total leads: {sum(counts.values())} | balanced: {status} (max-min={spread})")
    return balanced


def main() -> None:
    parser = argparse.ArgumentParser(description="Check round-robin lead distribution against a running server.")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Server root URL.")
    parser.add_argument("--agents", type=int, default=3, help="Number of agents to create.")
    parser.add_argument("-n", "--leads", type=int, default=90, help="Number of prospects to submit.")
    parser.add_argument("--api-key", default=settings.security.admin_api_key, help="Admin API key.")
    args = parser.parse_args()

    try:
        balanced = asyncio.run(run_check(args.base_url, args.agents, args.leads, args.api_key))
    except httpx.HTTPError as e:
        logger.error(f"[bold red]Load check failed:[/bold red] {e}")
        sys.exit(2)
    sys.exit(0 if balanced else 1)


if __name__ == "__main__":
    main()
