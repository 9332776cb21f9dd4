"""
Verify a deployed Grafana for TwinMaker stack.

Reads the CloudFormation outputs of the stack, finds the load balancer URL,
and calls Grafana's health endpoint behind it.

Usage:
    python scripts/check_grafana.py
    python scripts/check_grafana.py --stack-name MyStack --wait
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import Any, Dict, List, Optional, Tuple

import boto3
import requests
from botocore.exceptions import ClientError

REGION = os.getenv("AWS_REGION", "us-east-1")
STACK_NAME = "GrafanaForTwinMakerStack"
HEALTH_CHECK_PATH = "/api/health"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger("check_grafana")


def get_stack_outputs(cfn, stack_name: str) -> Dict[str, str]:
    """Return ``{OutputKey: OutputValue}`` for *stack_name*."""
    try:
        resp = cfn.describe_stacks(StackName=stack_name)
    except ClientError as e:
        if "does not exist" in str(e):
            raise RuntimeError(f"Stack not found: {stack_name}") from e
        raise

    stack = resp["Stacks"][0]
    return {o["OutputKey"]: o["OutputValue"] for o in stack.get("Outputs", [])}


def find_load_balancer_url(outputs: Dict[str, str]) -> str:
    # the ALB pattern prefixes its output keys with the construct id
    for key, value in outputs.items():
        if "ServiceURL" in key:
            return value.rstrip("/")
    for key, value in outputs.items():
        if "LoadBalancerDNS" in key:
            return f"http://{value}"
    raise KeyError("Stack has no ServiceURL or LoadBalancerDNS output")


def check_health(base_url: str, timeout: float = 5.0) -> Tuple[bool, Dict[str, Any]]:
    """Call ``GET <base_url>/api/health``; never raises for HTTP problems."""
    url = f"{base_url}{HEALTH_CHECK_PATH}"
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.exceptions.RequestException as e:
        return False, {"error": str(e)}

    try:
        payload = r.json()
    except ValueError:
        return False, {"body": r.text}
    if not isinstance(payload, dict):
        return False, {"body": r.text}

    # grafana reports {"database": "ok", ...} when its storage is usable
    return payload.get("database") == "ok", payload


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--stack-name", default=STACK_NAME)
    parser.add_argument("--region", default=REGION)
    parser.add_argument("--timeout", type=float, default=5.0,
                        help="HTTP timeout in seconds")
    parser.add_argument("--wait", action="store_true",
                        help="poll until healthy or attempts are exhausted")
    parser.add_argument("--attempts", type=int, default=20)
    parser.add_argument("--interval", type=float, default=15.0)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    cfn = boto3.client("cloudformation", region_name=args.region)
    try:
        outputs = get_stack_outputs(cfn, args.stack_name)
        base_url = find_load_balancer_url(outputs)
    except (RuntimeError, KeyError) as e:
        logger.error("%s", e)
        return 1

    for key in ("VpcId", "ClusterName", "FileSystemId", "DatasourceRoleArn"):
        if key in outputs:
            logger.info("%-18s %s", key, outputs[key])
    logger.info("Checking %s%s", base_url, HEALTH_CHECK_PATH)

    attempts = args.attempts if args.wait else 1
    for attempt in range(1, attempts + 1):
        ok, payload = check_health(base_url, timeout=args.timeout)
        if ok:
            logger.info("Grafana is healthy: %s", payload)
            return 0
        logger.warning("Attempt %d/%d not healthy: %s", attempt, attempts, payload)
        if attempt < attempts:
            time.sleep(args.interval)

    logger.error("Grafana did not become healthy.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
