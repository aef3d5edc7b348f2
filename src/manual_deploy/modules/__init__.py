"""manual-deploy modules - Self-contained bricks following the brick philosophy

Each module wraps one external collaborator behind a small contract:
- Subprocess Helper: Run a command to completion
- Command Runner: Injectable command execution (real or recorded)
- Environment Gate: Decide whether this CI build may deploy
- Git Repository: Clone, inspect, commit and push the website repository
- Manual Builder: Install gems and run the rake build tasks
- Deploy Key: Decrypt the deployment key with restrictive permissions
- SSH Config Writer: Trust the git host with the deployment key
- Prerequisites Checker: Verify required tools
- Progress Display: Step-by-step console feedback
"""
