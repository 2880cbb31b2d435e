"""Built-in proper nouns kept in their canonical casing by sentence case.

Entries are matched case-insensitively.  Multi-word entries are matched as
a unit before the heading is split into words.  Users extend the table
with ``heading.proper_nouns`` and suppress entries with
``heading.common_nouns``.
"""

from __future__ import annotations

_LANGUAGES = (
    "Ada", "AppleScript", "AssemblyScript", "Bash", "C#", "C++", "Clojure",
    "ClojureScript", "COBOL", "CoffeeScript", "CSS", "Dart",
    "Deno", "Elixir", "Erlang", "F#", "Fortran", "GraphQL", "Groovy",
    "Haskell", "HTML", "Java", "JavaScript", "JSON", "Julia", "Kotlin",
    "LaTeX", "Lua", "Markdown", "MATLAB", "Nim", "Nix", "Objective-C",
    "OCaml", "Perl", "PHP", "PowerShell", "Prolog", "PureScript", "Python",
    "ReScript", "Ruby", "Rust", "Scala", "Smalltalk",
    "Solidity", "SQL", "Svelte", "Swift", "TeX", "TOML", "TypeScript",
    "WebAssembly", "YAML", "Zig",
)

_TECHNOLOGIES = (
    "Actix", "Android", "Angular", "Ansible", "Apache", "Axum", "Babel",
    "BitTorrent", "Bluetooth", "Bootstrap", "Chrome",
    "Chromium", "CommonMark", "Django", "Docker", "Electron",
    "Emacs", "esbuild", "ESLint", "Fastify", "Fediverse",
    "Firebase", "Firefox", "Flask", "Flutter", "FreeBSD", "Git", "GitHub",
    "GitLab", "Gitea", "Forgejo", "Codeberg", "Gradle", "Gunicorn", "Hono",
    "Homebrew", "Hugo", "IntelliJ", "iOS", "iPadOS", "iPhone", "iPad",
    "Jekyll", "Jenkins", "Jest", "Jupyter", "Kafka", "Kubernetes", "Laravel",
    "Linux", "LLVM", "macOS", "Mastodon", "Maven", "Mercurial", "Misskey",
    "MongoDB", "MySQL", "Neovim", "NetBSD", "Next.js", "Nginx", "Node.js",
    "NixOS", "npm", "Nuxt", "NumPy", "OpenBSD", "OpenSSL", "pandas",
    "PostgreSQL", "Prettier", "Prometheus", "PyPI", "pytest", "PyTorch",
    "RabbitMQ", "React", "Redis", "RSS", "rustfmt", "Safari",
    "SQLite", "Subversion", "SvelteKit", "Tailwind", "TensorFlow",
    "Terraform", "Ubuntu", "Debian", "Fedora", "Unicode", "Unix", "Vim",
    "Vite", "Vitest", "Vue", "Vue.js", "Webpack", "Windows", "WordPress",
    "Xcode", "Yarn", "ActivityPub", "JSR", "Zod",
)

_COMPANIES = (
    "Adobe", "Amazon", "AMD", "Apple", "Atlassian", "Cisco", "Cloudflare",
    "Discord",
    "Dropbox", "Facebook", "Google", "IBM", "Instagram", "Intel", "LinkedIn",
    "Microsoft", "Mozilla", "Netflix", "Nvidia", "OpenAI", "Oracle",
    "PayPal", "Reddit", "Salesforce", "Samsung", "Spotify",
    "Stripe", "Telegram", "Twitter", "Uber", "Vercel", "Netlify", "YouTube",
    "Bluesky", "Wikipedia",
)

_MULTI_WORD = (
    "GitHub Actions", "GitHub Pages", "GitHub Copilot", "GitLab CI",
    "Codeberg Pages", "Visual Studio Code", "Visual Studio", "Google Chrome",
    "Google Cloud", "Amazon Web Services", "Microsoft Azure", "Apple Silicon",
    "Deno Deploy", "Cloudflare Workers", "Ruby on Rails", "Stack Overflow",
    "Hacker News", "Creative Commons", "Internet Explorer", "Windows Subsystem for Linux",
    "New York", "San Francisco", "Los Angeles", "United States",
    "United Kingdom", "European Union", "South Korea", "North Korea",
    "New Zealand", "Hong Kong", "South Africa", "Saudi Arabia",
    "North America", "South America", "Middle East",
)

_PLACES = (
    "Africa", "Antarctica", "Asia", "Australia", "Europe", "Oceania",
    "Argentina", "Austria", "Belgium", "Brazil", "Canada", "Chile", "China",
    "Denmark", "Egypt", "Finland", "France", "Germany", "Greece", "India",
    "Indonesia", "Ireland", "Israel", "Italy", "Japan", "Korea", "Mexico",
    "Netherlands", "Norway", "Poland", "Portugal", "Russia", "Singapore",
    "Spain", "Sweden", "Switzerland", "Taiwan", "Thailand", "Turkey",
    "Ukraine", "Vietnam", "London", "Paris", "Berlin", "Tokyo", "Seoul",
    "Beijing", "Toronto",
)

_PEOPLE_AND_LANGUAGES = (
    "English", "French", "German", "Spanish", "Italian", "Portuguese",
    "Russian", "Chinese", "Japanese", "Korean", "Arabic", "Hindi", "Dutch",
    "Swedish", "Polish", "Turkish", "Hebrew", "Greek", "Latin", "Vietnamese",
    "Thai", "Indonesian", "Ukrainian", "Esperanto", "American", "British",
    "European", "Asian", "African", "Canadian", "Australian",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
    "Sunday", "January", "February", "April", "June", "July", "August",
    "September", "October", "November", "December",
)

PROPER_NOUNS: tuple[str, ...] = (
    _LANGUAGES
    + _TECHNOLOGIES
    + _COMPANIES
    + _MULTI_WORD
    + _PLACES
    + _PEOPLE_AND_LANGUAGES
)
"""Canonical spellings of every built-in proper noun."""

PROPER_NOUN_INDEX: dict[str, str] = {noun.lower(): noun for noun in PROPER_NOUNS}
"""Lowercase key to canonical spelling."""
