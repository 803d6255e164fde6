from livebuild.dev import main

main()
