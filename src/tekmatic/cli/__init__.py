"""
Command-line interface for tekmatic.

- Listing serial ports and controller configurations
- Discovering slot modules
- Calling controller operations by name
- Showing and monitoring live status

Examples
--------
Discover the slots of the simulated controller:
```bash
$ tekmatic discover -n mock
```

Set slot 1 to 37 degC on a physical controller:
```bash
$ tekmatic call SetTargetTemperature 1 37 -p COM3
```

CLI Tree
--------

```
$ tekmatic --tree
cli
└── call
└── config
    └── install
    └── list
    └── show
└── discover
└── monitor
└── ports
└── status
```
"""

from .base import cli, tree_option

__all__ = ["cli", "tree_option"]
