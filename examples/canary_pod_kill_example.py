"""
Example: PodChaos canary measurement

This script runs a pod-kill experiment against the canary pods of a rollout,
the way a canary analysis step would, and prints the measurement result.
"""

import logging
import sys

from chaos_canary import ChaosController, Deadline, PLUGIN_NAME, PluginConfig


# Configure logging to see controller activity
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


POD_KILL_CRD = """\
apiVersion: chaos-mesh.org/v1alpha1
kind: PodChaos
metadata:
  namespace: default
spec:
  action: pod-kill
  mode: one
  selector:
    namespaces:
      - default
  duration: "30s"
"""


def main():
    """
    Run one canary measurement.

    This example:
    1. Builds the host configuration a rollout analysis template would pass
    2. Creates the experiment scoped to pods of the canary ReplicaSet
    3. Watches it until it finishes, then deletes it
    """
    canary_hash = sys.argv[1] if len(sys.argv) > 1 else "abc123"

    print("=" * 60)
    print("Pod Kill Canary Measurement Example")
    print("=" * 60)

    plugin_config = PluginConfig.from_provider({
        PLUGIN_NAME: {
            "chaosExperimentCRD": POD_KILL_CRD,
            "targetReplicaSetLabel": "rollouts-pod-template-hash",
            "targetReplicaSetValue": canary_hash,
            "timeout": "2m",
            "cleanupOnFinish": True,
        }
    })

    controller = ChaosController()
    print(f"\nMeasurement metadata: {controller.get_metadata(plugin_config)}")

    # The whole invocation gets ten minutes, however long the configured timeout
    result = controller.run(plugin_config, parent=Deadline(600))

    print(f"\nResult: {result}")
    print(f"Value: {result.value}")
    print(f"Metadata: {result.metadata}")

    if not result.success:
        # Make sure nothing is left behind when the measurement is aborted
        controller.terminate(plugin_config, result)
        sys.exit(1)


if __name__ == "__main__":
    main()
