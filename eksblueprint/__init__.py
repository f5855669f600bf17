"""
eksblueprint - deployment blueprint for a hello-world service on Amazon EKS.

The infrastructure itself lives in ``infrastructure/`` as CDK stacks. This
package holds everything those stacks and the CI pipeline share: settings,
trust policies, registry retention, scan gating and manifest rendering.
"""

__version__ = "1.0.0"
