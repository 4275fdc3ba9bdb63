# ABOUTME: Subcommands of the uopds CLI, one module per command.
# ABOUTME: Registered on the root group in uopds.cli.
