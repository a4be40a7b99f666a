#!/usr/bin/env python3
"""
SELinux Policy Helper - Entry Point

A Kubernetes controller that runs a policy helper pod for every pod annotated
with generate-selinux-policy and records the helper on the pod.

Usage:
    python run.py [--namespace NAMESPACE] [--opt-in-scope {pod,namespace}]
                  [--naming {hashed,concat}] [--dry-run] [--in-cluster]
"""

import argparse
import logging
import sys

from kubernetes import config

from selinux_policy_helper.config import (
    COMPANION_IMAGE,
    DEFAULT_WORKERS,
    OPERATOR_NAMESPACE,
    RESYNC_INTERVAL_SECONDS,
    ControllerConfig,
    NamingScheme,
    OptInScope,
)
from selinux_policy_helper.controller import PodController
from selinux_policy_helper.gateway import ClusterGateway
from selinux_policy_helper.manager import ControllerManager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SELinux Policy Helper - Generate SELinux policies for annotated pods"
    )
    parser.add_argument(
        "--namespace", "-n",
        default="",
        help="Namespace to watch (default: all namespaces)"
    )
    parser.add_argument(
        "--operator-namespace",
        default=OPERATOR_NAMESPACE,
        help=f"Namespace policy helper pods run in (default: {OPERATOR_NAMESPACE})"
    )
    parser.add_argument(
        "--image",
        default=COMPANION_IMAGE,
        help="Policy helper image"
    )
    parser.add_argument(
        "--opt-in-scope",
        choices=[s.value for s in OptInScope],
        default=OptInScope.POD_OR_NAMESPACE.value,
        help="Honor the opt-in annotation on pods only, or on pods and namespaces"
    )
    parser.add_argument(
        "--naming",
        choices=[s.value for s in NamingScheme],
        default=NamingScheme.HASHED.value,
        help="Policy helper pod naming scheme"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help="Number of reconcile workers"
    )
    parser.add_argument(
        "--resync-interval",
        type=float,
        default=RESYNC_INTERVAL_SECONDS,
        help="Seconds between full resyncs of all pods"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run in dry-run mode (no changes made)"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ControllerConfig:
    return ControllerConfig(
        operator_namespace=args.operator_namespace,
        image=args.image,
        opt_in_scope=OptInScope(args.opt_in_scope),
        naming_scheme=NamingScheme(args.naming),
        watch_namespace=args.namespace,
        workers=args.workers,
        resync_interval=args.resync_interval,
        dry_run=args.dry_run
    )


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load Kubernetes configuration
    try:
        if args.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster configuration")
        else:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
    except Exception as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        sys.exit(1)

    controller_config = build_config(args)
    gateway = ClusterGateway()
    manager = ControllerManager([
        PodController(gateway, controller_config),
    ])

    try:
        manager.run()
    except Exception as e:
        logger.error(f"Controller error: {e}")
        manager.stop()
        sys.exit(1)
    logger.info("Controller stopped")


if __name__ == "__main__":
    main()
