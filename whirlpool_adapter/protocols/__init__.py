"""
Protocol layer

- whirlpool: Orca Whirlpools program (addresses, instructions, parsers, math)
- spl: System, Token and Associated Token Account instructions
"""
