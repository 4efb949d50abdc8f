from sqlnotebook.cli import main

main()
