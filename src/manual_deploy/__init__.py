"""manual-deploy - Publish the Flycheck manual from Travis CI

Philosophy:
- Ruthless simplicity
- Brick architecture (one module per external tool)
- Security by design (secrets only from the CI environment, never logged)
- Skip quietly when the build is not ours to deploy

manual-deploy clones the website repository, rebuilds the manual into it,
and pushes the result over SSH with a deployment key decrypted at runtime.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
