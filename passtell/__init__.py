"""
passtell - One-File-Per-Secret Password Manager

A small command-line password manager that keeps every secret in its own
encrypted file. All cryptography is done by the external `age` tool; this
package only names, prompts, moves and deletes files.

Components:
- config.py: Store directory and tool settings (PASSTELL_DIR)
- errors.py: Exception classes
- tool.py: Running `age` and formatting its errors
- store.py: Secret store operations (add/show/edit/delete/list)
- passwords.py: Random password generation
- cli.py: Command-line interface (uses built-in argparse)

Usage:
    passtell add bank              # Prompt for a secret, save bank.age
    passtell add bank --generate   # Save a generated password
    passtell show bank             # Print the secret
    passtell show bank --clip      # Copy it to the clipboard
    passtell edit bank             # Rename and/or change the secret
    passtell delete bank           # Remove it
    passtell list [directory]      # List every *.age file
"""

__version__ = "0.3.0"
__author__ = "passtell Team"
