from llm_conversations.cli import main

main()
