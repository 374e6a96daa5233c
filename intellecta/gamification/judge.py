"""
Client for the external code judge service
Submit -> poll /status/{task_id} -> normalized per-test results
"""

import asyncio
import logging

import httpx

from intellecta.core.config import (
    JUDGE_API_URL, JUDGE_API_KEY, JUDGE_TIMEOUT_SECONDS,
    JUDGE_POLL_INTERVAL_SECONDS, JUDGE_MAX_POLL_ATTEMPTS,
)

logger = logging.getLogger(__name__)


class JudgeUnavailableError(Exception):
    """The judge could not produce a verdict (down, error status, timeout)"""


def normalize_result(result: dict, test_cases: list[dict]) -> dict:
    """Line judge test results up with our test cases"""
    raw = result.get("test_results") or []
    test_results = []
    for index, test_case in enumerate(test_cases):
        item = raw[index] if index < len(raw) else {}
        actual = item.get("actual_output", item.get("output", item.get("stdout")))
        test_results.append({
            "test_case": index,
            "passed": bool(item.get("passed", False)),
            "actual_output": actual.strip() if isinstance(actual, str) else actual,
            "expected_output": test_case["expected_output"],
        })

    all_passed = bool(test_results) and all(t["passed"] for t in test_results)
    return {
        "verdict": result.get("verdict") or ("Accepted" if all_passed else "Wrong Answer"),
        "is_correct": all_passed,
        "test_results": test_results,
        "error": result.get("error"),
    }


async def run_judge(code: str, language: str, test_cases: list[dict]) -> dict:
    headers = {"X-API-Key": JUDGE_API_KEY}
    payload = {
        "language": language,
        "sourceCode": code,
        "testcases": [{"input": tc.get("input", ""), "output": tc["expected_output"]} for tc in test_cases],
    }

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{JUDGE_API_URL}/judge", json=payload, headers=headers, timeout=JUDGE_TIMEOUT_SECONDS
            )
            if response.status_code != 200:
                raise JudgeUnavailableError(f"Judge returned {response.status_code}")

            task_id = response.json().get("task_id")
            if not task_id:
                raise JudgeUnavailableError("Judge did not return a task id")

            for _ in range(JUDGE_MAX_POLL_ATTEMPTS):
                await asyncio.sleep(JUDGE_POLL_INTERVAL_SECONDS)
                status_response = await client.get(
                    f"{JUDGE_API_URL}/status/{task_id}", headers=headers, timeout=5.0
                )
                if status_response.status_code != 200:
                    continue
                status_data = status_response.json()
                if status_data.get("status") == "completed":
                    return normalize_result(status_data.get("result", {}), test_cases)
    except httpx.HTTPError as e:
        logger.error("Judge request failed: %s", e)
        raise JudgeUnavailableError(str(e))

    raise JudgeUnavailableError("Evaluation timed out")
