"""
PostgreSQL example for Merge Batcher.

Queues product inserts, stock updates and a cleanup statement the way an
ORM session would, and lets MergeBatcher fold them into a few round trips.

Requirements:
- PostgreSQL database
- psycopg2-binary package: pip install psycopg2-binary
"""

import argparse
import logging
import os
import time
from typing import List

from merge_batcher import (
    BatcherSettings,
    Expectations,
    MergeBatcher,
    Parameter,
    PendingStatement,
    QueryCollector,
)
from merge_batcher.executors.postgresql import PostgreSQLExecutor

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def get_connection_params():
    """Get PostgreSQL connection parameters from environment or defaults."""
    return {
        "host": os.environ.get("PGHOST", "localhost"),
        "port": int(os.environ.get("PGPORT", 5432)),
        "database": os.environ.get("PGDATABASE", "postgres"),
        "user": os.environ.get("PGUSER", "postgres"),
        "password": os.environ.get("PGPASSWORD", "postgres"),
    }


def product_inserts(num_products: int) -> List[PendingStatement]:
    statements = []
    for i in range(1, num_products + 1):
        statements.append(PendingStatement(
            "INSERT INTO products (id, name, price, stock) VALUES (:id, :name, :price, :stock)",
            [
                Parameter("id", i),
                Parameter("name", f"Product {i}"),
                Parameter("price", round((i % 100) * 1.25 + 9.99, 2)),
                Parameter("stock", i % 20),
            ],
        ))
    return statements


def stock_updates(num_products: int) -> List[PendingStatement]:
    return [
        PendingStatement(
            "UPDATE products SET stock = stock + :delta WHERE id = :id",
            [Parameter("delta", 5), Parameter("id", i)],
        )
        for i in range(1, num_products + 1, 3)
    ]


def run_postgresql_example(args: argparse.Namespace) -> None:
    """
    Run the PostgreSQL example with Merge Batcher.

    Args:
        args: Command-line arguments
    """
    connection_params = get_connection_params()

    # Log connection info (without password)
    safe_params = {k: v for k, v in connection_params.items() if k != "password"}
    logger.info(f"Connecting to PostgreSQL database with parameters: {safe_params}")

    executor = PostgreSQLExecutor(
        connection_params=connection_params,
        isolation_level="read_committed",
        application_name="merge-batcher-example",
    )
    collector = QueryCollector()

    try:
        executor.cursor.execute(
            "CREATE TEMP TABLE products (id integer PRIMARY KEY, name text, price numeric, stock integer)"
        )

        statements = product_inserts(args.num_products) + stock_updates(args.num_products)
        # Row count of a cleanup is unknown up front
        statements.append(PendingStatement(
            "DELETE FROM products WHERE stock = :stock",
            [Parameter("stock", 0)],
            Expectations.NONE,
        ))

        start_time = time.time()
        settings = BatcherSettings(batch_size=args.batch_size)
        with MergeBatcher(executor, settings=settings, query_collector=collector) as batcher:
            for statement in statements:
                batcher.add_to_batch(statement)
        executor.commit_transaction()

        logger.info(f"Executed {len(statements)} statements as {len(collector.queries)} merged statements "
                    f"({time.time() - start_time:.2f}s)")
        collector.log_summary()

        executor.cursor.execute("SELECT COUNT(*), SUM(stock) FROM products")
        count, stock = executor.cursor.fetchone()
        logger.info(f"{count} products left with {stock} items in stock")
    except Exception:
        executor.rollback_transaction()
        raise
    finally:
        executor.close()
        logger.info("Example completed")


def main():
    """Run the PostgreSQL example."""
    parser = argparse.ArgumentParser(description='Merge Batcher PostgreSQL Example')
    parser.add_argument('--num-products', type=int, default=500,
                        help='Number of products to insert')
    parser.add_argument('--batch-size', type=int, default=100,
                        help='Statements merged before a flush')

    args = parser.parse_args()

    try:
        run_postgresql_example(args)
    except Exception as e:
        logger.error(f"Error in PostgreSQL example: {str(e)}")
        raise


if __name__ == "__main__":
    main()
