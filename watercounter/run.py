import uvicorn

from watercounter.config import settings


def main():
	uvicorn.run(
		"watercounter.main:app",
		host=settings.HOST,
		port=settings.PORT,
		reload=settings.DEBUG,
		log_level=settings.LOG_LEVEL.lower(),
	)


if __name__ == "__main__":
	main()
