from wordpress_mcp.cli import main

main()
