"""Starter project created on a fresh database."""
from __future__ import annotations

DEFAULT_PROJECT = {"name": "my-project", "description": "Default project"}

DEFAULT_FILES = [
    {
        "name": "index.js",
        "language": "javascript",
        "content": """// Welcome to CodeIDE - AI-Powered Development Environment
// This is a fully functional code editor with AI assistance

function fibonacci(n) {
    if (n <= 1) return n;
    return fibonacci(n - 1) + fibonacci(n - 2);
}

console.log("Fibonacci sequence:");
for (let i = 0; i < 10; i++) {
    console.log(`F(${i}) = ${fibonacci(i)}`);
}

// Try asking the AI assistant for help with:
// - Code optimization
// - Bug fixes
// - Feature implementations
// - Best practices""",
    },
    {
        "name": "main.py",
        "language": "python",
        "content": """# Python example
def fibonacci(n):
    if n <= 1:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)

if __name__ == "__main__":
    print("Fibonacci sequence:")
    for i in range(10):
        print(f"F({i}) = {fibonacci(i)}")""",
    },
    {
        "name": "index.html",
        "language": "html",
        "content": """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>My Project</title>
    <link rel="stylesheet" href="styles.css">
</head>
<body>
    <h1>Welcome to My Project</h1>
    <script src="index.js"></script>
</body>
</html>""",
    },
    {
        "name": "styles.css",
        "language": "css",
        "content": """body {
    font-family: Arial, sans-serif;
    margin: 0;
    padding: 20px;
    background-color: #f0f0f0;
}

h1 {
    color: #333;
    text-align: center;
}""",
    },
    {
        "name": "README.md",
        "language": "markdown",
        "content": """# My Project

This is a sample project created in CodeIDE.

## Features

- Code editing with syntax highlighting
- AI-powered code assistance
- Real-time code execution
- File management

## Getting Started

1. Edit the files in the file explorer
2. Use the AI assistant for help
3. Run your code with the Run button
4. View output in the terminal

Happy coding!""",
    },
]

__all__ = ["DEFAULT_PROJECT", "DEFAULT_FILES"]
