"""
Example: Using BuildSession with the packaged Windows Feeds declarations.

Shows the two ways of driving a build:
- From a config file, as the CLI does
- From a dict plus a caller-owned SymbolTable that later stages reuse
"""

from pathlib import Path

from scriptdecl.build import BuildSession
from scriptdecl.cli import build
from scriptdecl.core.projection import encode_member, projected_name
from scriptdecl.registry.symbol_table import SymbolTable

HERE = Path(__file__).parent


# =============================================================================
# Example 1: Config file
# =============================================================================
result = build(config_path=str(HERE / "feeds_build.yaml"), build_id="example-1")
print(f"Build status: {result['status']}")
for unit in result["units"]:
    print(f"   {unit['name']}: {unit['expressions']}")


# =============================================================================
# Example 2: Shared symbol table
# =============================================================================
table = SymbolTable()
session = BuildSession(build_id="example-2")
session.run(
    {
        "build_name": "feeds_inline",
        "units": [
            {
                "name": "reader",
                "references": [{"symbol": "System.Windows.Feeds.FeedXmlIncludeFlags", "member": "None"}],
            }
        ],
    },
    table=table,
)

flags = table.resolve("System.Windows.Feeds.FeedXmlIncludeFlags")
print(f"\n{flags.qualified_name} -> {projected_name(flags)}")
print(f"   CFExtensions = {encode_member(flags, 'CFExtensions')}")
